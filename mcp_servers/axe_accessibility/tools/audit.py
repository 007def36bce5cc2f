"""
Full axe audits of a URL or an HTML string.

Provides:
- test_accessibility: navigate to a URL and run axe
- test_html_string: inject markup and run axe
"""

from __future__ import annotations

import logging
from typing import Any

from ..axe import AxeBuilder, load_axe_source
from ..config import A11yConfig
from ..report import format_results
from .base import SmartToolError, ensure_allowed_navigation, loaded_page

logger = logging.getLogger("mcp.a11y.tools")


def _audit(config: A11yConfig, tool: str, *, url: str | None, html: str | None, tags: list[str] | None) -> dict[str, Any]:
    source = load_axe_source(config)
    with loaded_page(config, tool=tool, url=url, html=html) as page:
        try:
            report = AxeBuilder(page, source).with_tags(tags).analyze()
        except Exception as e:
            raise SmartToolError(
                tool=tool,
                action="analyze",
                reason=str(e),
                suggestion="Retry; if it persists the page may block script evaluation",
            ) from e
    return format_results(report)


def test_accessibility(config: A11yConfig, url: str, tags: list[str] | None = None) -> dict[str, Any]:
    """Audit a live page.

    Args:
        config: Server configuration
        url: Page to load (waits for network idle, bounded by navigation_timeout)
        tags: Optional axe tag filter, e.g. ["wcag2a", "wcag2aa"]

    Returns:
        Default-shaped report (violations, counts, engine metadata)
    """
    ensure_allowed_navigation(url, config)
    logger.info("testing accessibility for url=%s", url.split("?")[0])
    return _audit(config, "test_accessibility", url=url, html=None, tags=tags)


def test_html_string(config: A11yConfig, html: str, tags: list[str] | None = None) -> dict[str, Any]:
    """Audit literal markup; same output shape as test_accessibility."""
    logger.info("testing accessibility for html string (%d chars)", len(html))
    return _audit(config, "test_html_string", url=None, html=html, tags=tags)


# Not pytest tests, despite the names.
test_accessibility.__test__ = False  # type: ignore[attr-defined]
test_html_string.__test__ = False  # type: ignore[attr-defined]
