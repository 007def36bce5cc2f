"""ARIA attribute checks over literal markup."""

from __future__ import annotations

from typing import Any

from ..axe import AxeBuilder, load_axe_source
from ..config import A11yConfig
from ..report import shape_aria
from .base import SmartToolError, loaded_page

ARIA_RULES: tuple[str, ...] = (
    "aria-allowed-attr",
    "aria-hidden-body",
    "aria-required-attr",
    "aria-required-children",
    "aria-required-parent",
    "aria-roles",
    "aria-valid-attr",
    "aria-valid-attr-value",
)


def check_aria_attributes(config: A11yConfig, html: str) -> dict[str, Any]:
    source = load_axe_source(config)
    with loaded_page(config, tool="check_aria_attributes", html=html) as page:
        try:
            report = AxeBuilder(page, source).with_rules(ARIA_RULES).analyze()
        except Exception as e:
            raise SmartToolError(tool="check_aria_attributes", action="analyze", reason=str(e)) from e
    return shape_aria(report)
