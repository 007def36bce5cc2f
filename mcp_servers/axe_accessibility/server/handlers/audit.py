"""
Audit tool handlers - full axe runs and the rule catalog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ... import tools
from ..registry import require_browser
from ..types import ToolResult
from .args import optional_tags, require_string

if TYPE_CHECKING:
    from ...config import A11yConfig


def handle_test_accessibility(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    url = require_string(args, "url").strip()
    tags = optional_tags(args)
    require_browser(config)
    return ToolResult.json(tools.test_accessibility(config, url, tags))


def handle_test_html_string(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    html = require_string(args, "html")
    tags = optional_tags(args)
    require_browser(config)
    return ToolResult.json(tools.test_html_string(config, html, tags))


def handle_get_rules(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    # No browser precheck: a loaded catalog is served from memory.
    tags = optional_tags(args)
    return ToolResult.json(tools.get_rules(config, tags))


AUDIT_HANDLERS = {
    "test_accessibility": handle_test_accessibility,
    "test_html_string": handle_test_html_string,
    "get_rules": handle_get_rules,
}
