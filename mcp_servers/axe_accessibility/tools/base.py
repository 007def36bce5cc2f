"""
Base utilities for accessibility tools.

Provides:
- SmartToolError: structured failure with the tool/action that failed
- ensure_allowed_navigation: URL scheme and host allowlist check
- loaded_page: one browser + page with content loaded, released on exit
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from ..browser import Page, open_page
from ..config import A11yConfig
from ..errors import InvalidParamsError


@dataclass
class SmartToolError(Exception):
    """Structured error with context for AI agents."""

    tool: str
    action: str
    reason: str
    suggestion: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.tool}] {self.action} failed: {self.reason}"


def ensure_allowed_navigation(url: str, config: A11yConfig) -> None:
    """Allow http(s), file, data and about URLs; apply MCP_ALLOW_HOSTS to http(s)."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme in ("about", "data"):
        return
    if parsed.scheme == "file":
        if config.allow_hosts:
            raise InvalidParamsError("file:// URLs are not allowed while MCP_ALLOW_HOSTS is set")
        return
    if parsed.scheme not in ("http", "https"):
        raise InvalidParamsError(f"Unsupported URL scheme: {parsed.scheme or '(none)'} (allowed: http, https, file, data, about)")
    if not parsed.hostname:
        raise InvalidParamsError(f"URL has no host: {url}")
    if not config.is_host_allowed(parsed.hostname):
        raise InvalidParamsError(f"Host {parsed.hostname} is not in allowlist")


@contextmanager
def loaded_page(
    config: A11yConfig,
    *,
    tool: str,
    url: str | None = None,
    html: str | None = None,
) -> Generator[Page, None, None]:
    """Yield a fresh page with ``url`` navigated or ``html`` injected.

    Failures while loading are re-raised as SmartToolError; the browser is
    closed on every path.
    """
    with open_page(config) as page:
        try:
            if url is not None:
                page.goto(url, timeout=config.navigation_timeout)
            elif html is not None:
                page.set_content(html, timeout=config.navigation_timeout)
        except Exception as e:
            raise SmartToolError(
                tool=tool,
                action="load",
                reason=str(e),
                suggestion="Check that the URL is reachable or raise MCP_A11Y_NAV_TIMEOUT",
            ) from e
        yield page


__all__ = ["SmartToolError", "ensure_allowed_navigation", "loaded_page"]
