"""Tool schema definitions (the static tool catalog)."""

from __future__ import annotations

from typing import Any

_TAGS_HINT = 'Optional array of accessibility tags to test (e.g., "wcag2a", "wcag2aa", "wcag21a")'

TEST_ACCESSIBILITY_TOOL: dict[str, Any] = {
    "name": "test_accessibility",
    "description": "Test a webpage for accessibility issues using Axe-core",
    "inputSchema": {
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "URL of the webpage to test"},
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": _TAGS_HINT,
                "default": ["wcag2aa"],
            },
        },
        "required": ["url"],
    },
}

TEST_HTML_STRING_TOOL: dict[str, Any] = {
    "name": "test_html_string",
    "description": "Test an HTML string for accessibility issues",
    "inputSchema": {
        "type": "object",
        "properties": {
            "html": {"type": "string", "description": "HTML content to test"},
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": _TAGS_HINT,
                "default": ["wcag2aa"],
            },
        },
        "required": ["html"],
    },
}

GET_RULES_TOOL: dict[str, Any] = {
    "name": "get_rules",
    "description": "Get information about available accessibility rules with optional filtering",
    "inputSchema": {
        "type": "object",
        "properties": {
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": 'Filter rules by these tags (e.g., "wcag2a", "wcag2aa", "best-practice")',
            },
        },
    },
}

CHECK_COLOR_CONTRAST_TOOL: dict[str, Any] = {
    "name": "check_color_contrast",
    "description": "Check if a foreground and background color combination meets WCAG contrast requirements",
    "inputSchema": {
        "type": "object",
        "properties": {
            "foreground": {
                "type": "string",
                "description": 'Foreground color: hex ("#000000", "#000"), "rgb(0, 0, 0)" or "hsv(0, 0%, 0%)"',
            },
            "background": {
                "type": "string",
                "description": 'Background color: hex ("#FFFFFF", "#FFF"), "rgb(255, 255, 255)" or "hsv(0, 0%, 100%)"',
            },
            "fontSize": {"type": "number", "description": "Font size in pixels", "default": 16},
            "isBold": {"type": "boolean", "description": "Whether the text is bold", "default": False},
        },
        "required": ["foreground", "background"],
    },
}

CHECK_ARIA_ATTRIBUTES_TOOL: dict[str, Any] = {
    "name": "check_aria_attributes",
    "description": "Check if ARIA attributes are used correctly in HTML",
    "inputSchema": {
        "type": "object",
        "properties": {
            "html": {"type": "string", "description": "HTML content to test for ARIA attribute usage"},
        },
        "required": ["html"],
    },
}

CHECK_ORIENTATION_LOCK_TOOL: dict[str, Any] = {
    "name": "check_orientation_lock",
    "description": "Check if content forces a specific orientation",
    "inputSchema": {
        "type": "object",
        "properties": {
            "html": {"type": "string", "description": "HTML content to test for orientation lock issues"},
        },
        "required": ["html"],
    },
}

TOOL_DEFINITIONS: tuple[dict[str, Any], ...] = (
    TEST_ACCESSIBILITY_TOOL,
    TEST_HTML_STRING_TOOL,
    GET_RULES_TOOL,
    CHECK_COLOR_CONTRAST_TOOL,
    CHECK_ARIA_ATTRIBUTES_TOOL,
    CHECK_ORIENTATION_LOCK_TOOL,
)

__all__ = ["TOOL_DEFINITIONS"]
