"""
Focused check handlers - color contrast, ARIA attributes, orientation lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ... import tools
from ...color import parse_color
from ...errors import InvalidParamsError
from ..registry import require_browser
from ..types import ToolResult
from .args import optional_bool, optional_number, require_string

if TYPE_CHECKING:
    from ...config import A11yConfig


def handle_check_color_contrast(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    if not args.get("foreground") or not args.get("background"):
        raise InvalidParamsError("Missing required parameters: foreground and background colors")
    foreground = require_string(args, "foreground")
    background = require_string(args, "background")
    # Malformed colors are the client's fault, whether or not Chrome is installed.
    parse_color(foreground)
    parse_color(background)
    font_size = optional_number(args, "fontSize", 16)
    is_bold = optional_bool(args, "isBold", False)
    require_browser(config)
    return ToolResult.json(tools.check_color_contrast(config, foreground, background, font_size, is_bold))


def handle_check_aria_attributes(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    html = require_string(args, "html")
    require_browser(config)
    return ToolResult.json(tools.check_aria_attributes(config, html))


def handle_check_orientation_lock(config: A11yConfig, args: dict[str, Any]) -> ToolResult:
    html = require_string(args, "html")
    require_browser(config)
    return ToolResult.json(tools.check_orientation_lock(config, html))


CHECK_HANDLERS = {
    "check_color_contrast": handle_check_color_contrast,
    "check_aria_attributes": handle_check_aria_attributes,
    "check_orientation_lock": handle_check_orientation_lock,
}
