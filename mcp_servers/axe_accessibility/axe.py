"""
axe-core integration.

axe-core is a JavaScript library; it is injected into the page under test and
driven through ``Page.evaluate``. The bundle is resolved once per process:

1. ``MCP_AXE_SOURCE`` (a local ``axe.min.js``)
2. a cached copy under ``MCP_AXE_CACHE_DIR``
3. a download from ``MCP_AXE_URL`` (cdnjs by default), then cached
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from .browser import Page, open_page
from .config import A11yConfig
from .http_client import HttpClientError, http_get_bytes
from .report import AccessibilityReport

logger = logging.getLogger("mcp.a11y.axe")

_RUN_SCRIPT = """async (options) => {
  if (!window.axe || typeof window.axe.run !== 'function') {
    throw new Error('axe-core is not loaded in the page');
  }
  return await window.axe.run(document, options);
}"""

_GET_RULES_SCRIPT = """() => {
  if (!window.axe || typeof window.axe.getRules !== 'function') {
    throw new Error('axe-core is not loaded in the page');
  }
  return window.axe.getRules();
}"""


class AxeSourceError(RuntimeError):
    """The axe-core bundle could not be read or downloaded."""


class AxeRunError(RuntimeError):
    """axe-core returned something that is not a result object."""


_source_lock = threading.Lock()
_source_cache: dict[tuple[str | None, str, str], str] = {}


def _cache_path(config: A11yConfig) -> Path:
    digest = hashlib.sha256(config.axe_url.encode()).hexdigest()[:16]
    return Path(config.axe_cache_dir) / f"axe-{digest}.min.js"


def _read_source(config: A11yConfig) -> str:
    if config.axe_source_path:
        path = Path(config.axe_source_path)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AxeSourceError(f"Cannot read axe-core bundle at {path}: {exc}") from exc

    cached = _cache_path(config)
    if cached.is_file() and cached.stat().st_size > 0:
        return cached.read_text(encoding="utf-8")

    logger.info("downloading axe-core from %s", config.axe_url)
    try:
        body = http_get_bytes(config.axe_url, timeout=config.http_timeout)
    except HttpClientError as exc:
        raise AxeSourceError(f"Cannot download axe-core from {config.axe_url}: {exc}") from exc

    source = body.decode("utf-8")
    if "axe" not in source[:4096]:
        raise AxeSourceError(f"Downloaded file from {config.axe_url} does not look like axe-core")

    try:
        cached.parent.mkdir(parents=True, exist_ok=True)
        tmp = cached.with_suffix(".tmp")
        tmp.write_text(source, encoding="utf-8")
        tmp.replace(cached)
    except OSError:
        logger.warning("axe-core cache write failed: %s", cached, exc_info=True)
    return source


def load_axe_source(config: A11yConfig) -> str:
    """Return the axe-core bundle text (memoised per process)."""
    key = (config.axe_source_path, config.axe_url, config.axe_cache_dir)
    with _source_lock:
        source = _source_cache.get(key)
        if source is None:
            source = _read_source(config)
            _source_cache[key] = source
        return source


class AxeBuilder:
    """Fluent runner for one axe analysis of one page."""

    def __init__(self, page: Page, source: str) -> None:
        self.page = page
        self.source = source
        self._tags: list[str] = []
        self._rules: list[str] = []
        self._options: dict[str, Any] = {}

    def with_tags(self, tags: Iterable[str] | None) -> AxeBuilder:
        self._tags = [t for t in (tags or []) if t]
        return self

    def with_rules(self, rules: Iterable[str] | None) -> AxeBuilder:
        self._rules = [r for r in (rules or []) if r]
        return self

    def options(self, options: dict[str, Any]) -> AxeBuilder:
        self._options = dict(options)
        return self

    def build_options(self) -> dict[str, Any]:
        opts: dict[str, Any] = {}
        if self._rules:
            opts["runOnly"] = {"type": "rule", "values": list(self._rules)}
        elif self._tags:
            opts["runOnly"] = {"type": "tag", "values": list(self._tags)}
        opts.update(self._options)
        return opts

    def analyze(self) -> AccessibilityReport:
        self.page.add_script(self.source)
        raw = self.page.evaluate(_RUN_SCRIPT, self.build_options())
        if not isinstance(raw, dict):
            raise AxeRunError(f"axe.run returned {type(raw).__name__}, expected an object")
        return AccessibilityReport.from_dict(raw)


def filter_rules(rules: Iterable[dict[str, Any]], tags: Iterable[str] | None) -> list[dict[str, Any]]:
    """Keep rules carrying any of ``tags`` (all rules when no tags given)."""
    wanted = {t for t in (tags or []) if t}
    if not wanted:
        return list(rules)
    return [rule for rule in rules if wanted.intersection(rule.get("tags") or [])]


def fetch_rules(config: A11yConfig) -> list[dict[str, Any]]:
    """Read axe's full rule catalog from a blank page."""
    source = load_axe_source(config)
    with open_page(config) as page:
        page.add_script(source)
        rules = page.evaluate(_GET_RULES_SCRIPT)
    if not isinstance(rules, list):
        raise AxeRunError(f"axe.getRules returned {type(rules).__name__}, expected a list")
    return [rule for rule in rules if isinstance(rule, dict)]


class RuleCatalog:
    """Process-wide axe rule catalog, loaded once and read-only afterwards."""

    def __init__(self, loader: Callable[[A11yConfig], list[dict[str, Any]]] = fetch_rules) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._rules: tuple[dict[str, Any], ...] | None = None

    @property
    def loaded(self) -> bool:
        return self._rules is not None

    def rules(self, config: A11yConfig, tags: Iterable[str] | None = None) -> list[dict[str, Any]]:
        with self._lock:
            if self._rules is None:
                self._rules = tuple(self._loader(config))
                logger.info("axe rule catalog loaded: %d rules", len(self._rules))
            rules = self._rules
        return filter_rules(rules, tags)

    def reset(self) -> None:
        with self._lock:
            self._rules = None


rule_catalog = RuleCatalog()


__all__ = [
    "AxeBuilder",
    "AxeRunError",
    "AxeSourceError",
    "RuleCatalog",
    "fetch_rules",
    "filter_rules",
    "load_axe_source",
    "rule_catalog",
]
