"""
Orientation lock detection (WCAG 2.1 SC 1.3.4).

Two signals: axe's ``meta-viewport`` rule (zoom/orientation restrictions in
the viewport meta tag) and a scan of the page's stylesheets for
``orientation`` media features or properties.
"""

from __future__ import annotations

import logging
from typing import Any

from ..axe import AxeBuilder, load_axe_source
from ..browser import Page
from ..config import A11yConfig
from ..report import shape_orientation
from .base import SmartToolError, loaded_page

logger = logging.getLogger("mcp.a11y.tools")

META_VIEWPORT_OPTIONS: dict[str, Any] = {"rules": {"meta-viewport": {"enabled": True}}}

# Cross-origin sheets throw on cssRules access; that reads as "no lock".
CSS_ORIENTATION_SCRIPT = """() => {
  try {
    for (const sheet of Array.from(document.styleSheets)) {
      const rules = Array.from(sheet.cssRules || []);
      for (const rule of rules) {
        const text = rule.cssText || '';
        if (text.includes('@media screen and (orientation:') || text.includes('orientation:')) {
          return true;
        }
      }
    }
  } catch (e) {
    return false;
  }
  return false;
}"""


def detect_css_orientation_lock(page: Page) -> bool:
    return bool(page.evaluate(CSS_ORIENTATION_SCRIPT))


def check_orientation_lock(config: A11yConfig, html: str) -> dict[str, Any]:
    source = load_axe_source(config)
    with loaded_page(config, tool="check_orientation_lock", html=html) as page:
        try:
            report = AxeBuilder(page, source).options(META_VIEWPORT_OPTIONS).analyze()
            css_lock = detect_css_orientation_lock(page)
        except Exception as e:
            raise SmartToolError(tool="check_orientation_lock", action="analyze", reason=str(e)) from e
    logger.info("orientation check: violations=%d css_lock=%s", len(report.violations), css_lock)
    return shape_orientation(report, css_lock)
