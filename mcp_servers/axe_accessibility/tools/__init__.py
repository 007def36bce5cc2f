"""
Accessibility tools organized by operation.

Each module provides one focused operation:
- base: errors, URL policy, per-call page lifecycle
- audit: full axe audits of a URL or HTML string
- rules: axe rule catalog
- contrast: WCAG color contrast check
- aria: ARIA attribute rules
- orientation: orientation lock detection
"""

from .aria import ARIA_RULES, check_aria_attributes
from .audit import test_accessibility, test_html_string
from .base import SmartToolError, ensure_allowed_navigation, loaded_page
from .contrast import build_contrast_html, check_color_contrast
from .orientation import check_orientation_lock, detect_css_orientation_lock
from .rules import get_rules

__all__ = [
    "ARIA_RULES",
    "SmartToolError",
    "build_contrast_html",
    "check_aria_attributes",
    "check_color_contrast",
    "check_orientation_lock",
    "detect_css_orientation_lock",
    "ensure_allowed_navigation",
    "get_rules",
    "loaded_page",
    "test_accessibility",
    "test_html_string",
]
