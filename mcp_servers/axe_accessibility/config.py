from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

AXE_VERSION = "4.10.2"
DEFAULT_AXE_URL = f"https://cdnjs.cloudflare.com/ajax/libs/axe-core/{AXE_VERSION}/axe.min.js"
DEFAULT_CACHE_DIR = "~/.cache/axe-accessibility-mcp"

# Absolute install locations first, then names resolved on PATH.
# Snap Chromium is last: it cannot write a --user-data-dir outside $HOME/snap.
CHROME_PATHS: tuple[str, ...] = (
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/opt/google/chrome/chrome",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
)
CHROME_NAMES: tuple[str, ...] = ("chromium", "chromium-browser", "google-chrome", "google-chrome-stable", "chrome")
SNAP_CHROMIUM = "/snap/bin/chromium"


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _split_csv(raw: str | None) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def _env_float(name: str, default: float) -> float:
    """Positive float from env; anything unparsable or <= 0 yields ``default``."""
    try:
        value = float(os.environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_viewport(raw: str | None, default: tuple[int, int] = (1280, 800)) -> tuple[int, int]:
    """``"1280x800"`` -> (1280, 800)."""
    width, sep, height = (raw or "").lower().partition("x")
    if not sep or not width.strip().isdigit() or not height.strip().isdigit():
        return default
    size = (int(width), int(height))
    return size if min(size) > 0 else default


def find_chrome() -> str | None:
    for candidate in CHROME_PATHS:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    for name in CHROME_NAMES:
        found = shutil.which(name)
        if found:
            return found
    if os.path.isfile(SNAP_CHROMIUM):
        return SNAP_CHROMIUM
    return None


@dataclass
class A11yConfig:
    binary_path: str
    extra_flags: list[str] = field(default_factory=list)
    # Empty means every host is allowed.
    allow_hosts: list[str] = field(default_factory=list)
    navigation_timeout: float = 30.0
    launch_timeout: float = 15.0
    cdp_timeout: float = 30.0
    viewport_width: int = 1280
    viewport_height: int = 800
    http_timeout: float = 20.0
    axe_source_path: str | None = None
    axe_url: str = DEFAULT_AXE_URL
    axe_cache_dir: str = field(default_factory=lambda: expand_path(DEFAULT_CACHE_DIR))

    @classmethod
    def detect_binary(cls) -> str:
        override = os.environ.get("MCP_BROWSER_BINARY", "").strip()
        if override:
            return expand_path(override)
        # Unresolved: fails with a clear "binary not found" at call time.
        return find_chrome() or "google-chrome"

    @classmethod
    def from_env(cls) -> A11yConfig:
        width, height = _parse_viewport(os.environ.get("MCP_A11Y_VIEWPORT"))
        axe_source = os.environ.get("MCP_AXE_SOURCE", "").strip()
        return cls(
            binary_path=cls.detect_binary(),
            extra_flags=_split_csv(os.environ.get("MCP_BROWSER_FLAGS")),
            allow_hosts=[h.lower() for h in _split_csv(os.environ.get("MCP_ALLOW_HOSTS")) if h != "*"],
            navigation_timeout=_env_float("MCP_A11Y_NAV_TIMEOUT", 30.0),
            launch_timeout=_env_float("MCP_A11Y_LAUNCH_TIMEOUT", 15.0),
            cdp_timeout=_env_float("MCP_A11Y_CDP_TIMEOUT", 30.0),
            viewport_width=width,
            viewport_height=height,
            http_timeout=_env_float("MCP_HTTP_TIMEOUT", 20.0),
            axe_source_path=expand_path(axe_source) if axe_source else None,
            axe_url=os.environ.get("MCP_AXE_URL", "").strip() or DEFAULT_AXE_URL,
            axe_cache_dir=expand_path(os.environ.get("MCP_AXE_CACHE_DIR") or DEFAULT_CACHE_DIR),
        )

    def is_host_allowed(self, host: str) -> bool:
        """Exact match or subdomain of an allowlisted host."""
        if not self.allow_hosts:
            return True
        host = (host or "").strip().lower().rstrip(".")
        for entry in self.allow_hosts:
            allowed = entry.strip().lower().strip(".")
            if allowed and (host == allowed or host.endswith("." + allowed)):
                return True
        return False
