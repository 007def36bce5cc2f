"""
Name -> handler routing for tools/call.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import TYPE_CHECKING, Any

from .types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from ..config import A11yConfig

logger = logging.getLogger("mcp.a11y.registry")


class BrowserUnavailableError(RuntimeError):
    pass


def browser_binary_available(config: A11yConfig) -> bool:
    path = config.binary_path
    if os.path.sep in path or (os.path.altsep and os.path.altsep in path):
        return os.path.isfile(path) and os.access(path, os.X_OK)
    return shutil.which(path) is not None


def require_browser(config: A11yConfig) -> None:
    """Fail fast when no Chrome is installed; call after arguments are validated.

    Raises:
        BrowserUnavailableError: the configured binary does not resolve
    """
    if not browser_binary_available(config):
        raise BrowserUnavailableError(
            f"Browser binary not found: {config.binary_path} (install Chrome/Chromium or set MCP_BROWSER_BINARY)"
        )


class ToolRegistry:
    """Tool handlers keyed by name."""

    def __init__(self, handlers: dict[str, HandlerFunc] | None = None) -> None:
        self._entries: dict[str, HandlerFunc] = dict(handlers or {})

    def has(self, name: str) -> bool:
        return name in self._entries

    def dispatch(self, name: str, config: A11yConfig, arguments: dict[str, Any]) -> ToolResult:
        """
        Run the handler registered under ``name``.

        Raises:
            KeyError: unknown tool
        """
        return self._entries[name](config, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def create_default_registry() -> ToolRegistry:
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry(ALL_HANDLERS)
    logger.info("registered %d tools", len(registry))
    return registry


__all__ = ["BrowserUnavailableError", "ToolRegistry", "browser_binary_available", "create_default_registry", "require_browser"]
