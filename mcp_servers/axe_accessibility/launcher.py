from __future__ import annotations

import contextlib
import json
import logging
import shutil
import socket
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .config import A11yConfig

logger = logging.getLogger("mcp.a11y.launcher")


class BrowserLaunchError(RuntimeError):
    pass


@dataclass
class LaunchResult:
    command: list[str]
    port: int
    profile_dir: str
    log_path: str


def _tail_text(path: str, max_chars: int = 2000) -> str:
    try:
        raw = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""
    return raw[-max_chars:]


class BrowserLauncher:
    """Spawns and owns one private headless Chrome process."""

    def __init__(self, config: A11yConfig | None = None) -> None:
        self.config = config or A11yConfig.from_env()
        self.process: subprocess.Popen | None = None
        self.port: int | None = None
        self.profile_dir: str | None = None

    @staticmethod
    def find_free_port() -> int:
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
            s.bind(("127.0.0.1", 0))
            return s.getsockname()[1]

    def build_launch_command(self, port: int, profile_dir: str) -> list[str]:
        flags = [
            "--headless=new",
            f"--remote-debugging-port={port}",
            f"--user-data-dir={profile_dir}",
            "--remote-allow-origins=*",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-gpu",
            "--disable-dev-shm-usage",
            "--no-first-run",
            "--no-default-browser-check",
            "--disable-extensions",
            "--hide-scrollbars",
            "--mute-audio",
        ]
        return [self.config.binary_path, *flags, *self.config.extra_flags, "about:blank"]

    def _endpoint(self, path: str) -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def cdp_ready(self, timeout: float = 0.4) -> bool:
        if self.port is None:
            return False
        try:
            with urlopen(self._endpoint("/json/version"), timeout=timeout) as resp:
                return resp.status == 200
        except (OSError, TimeoutError, URLError):
            return False

    def launch(self) -> LaunchResult:
        """Start Chrome and block until its CDP endpoint answers."""
        if self.process is not None:
            raise BrowserLaunchError("Browser already launched by this launcher")

        self.port = self.find_free_port()
        self.profile_dir = tempfile.mkdtemp(prefix="axe-a11y-profile-")
        log_path = str(Path(self.profile_dir) / "chrome.log")
        cmd = self.build_launch_command(self.port, self.profile_dir)

        try:
            with open(log_path, "ab", buffering=0) as log_fh:
                self.process = subprocess.Popen(
                    cmd,
                    stdout=log_fh,
                    stderr=log_fh,
                    stdin=subprocess.DEVNULL,
                )
        except OSError as exc:
            self._remove_profile()
            raise BrowserLaunchError(f"Failed to launch browser ({self.config.binary_path}): {exc}") from exc

        deadline = time.monotonic() + self.config.launch_timeout
        while time.monotonic() < deadline:
            if self.process.poll() is not None:
                tail = _tail_text(log_path)
                self.stop()
                raise BrowserLaunchError(f"Browser exited during startup (code {self.process.returncode}): {tail}")
            if self.cdp_ready():
                logger.info("browser launched port=%s pid=%s", self.port, self.process.pid)
                return LaunchResult(cmd, self.port, self.profile_dir, log_path)
            time.sleep(0.1)

        tail = _tail_text(log_path)
        self.stop()
        raise BrowserLaunchError(f"Browser launch timed out after {self.config.launch_timeout:g}s: {tail}")

    def new_target(self, url: str = "about:blank", timeout: float = 5.0) -> dict[str, Any]:
        """Open a new page target and return its /json descriptor."""
        # Chrome >= 111 rejects GET on /json/new.
        req = Request(self._endpoint(f"/json/new?{quote(url, safe=':/')}"), method="PUT")
        try:
            with urlopen(req, timeout=timeout) as resp:
                payload = json.loads(resp.read().decode())
        except (OSError, URLError, ValueError) as exc:
            raise BrowserLaunchError(f"Failed to open a new page: {exc}") from exc
        if not isinstance(payload, dict) or not payload.get("webSocketDebuggerUrl"):
            raise BrowserLaunchError("Failed to open a new page: no webSocketDebuggerUrl in response")
        return payload

    def stop(self, *, timeout: float = 3.0) -> bool:
        """Best-effort stop of the launcher-owned Chrome process."""
        proc = self.process
        if proc is None:
            self._remove_profile()
            return False

        if proc.poll() is None:
            with contextlib.suppress(OSError):
                proc.terminate()
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                # Escalate to kill.
                with contextlib.suppress(OSError):
                    proc.kill()
                with contextlib.suppress(subprocess.TimeoutExpired):
                    proc.wait(timeout=timeout)

        self._remove_profile()
        return True

    def _remove_profile(self) -> None:
        if self.profile_dir:
            shutil.rmtree(self.profile_dir, ignore_errors=True)
