"""axe rule catalog lookup."""

from __future__ import annotations

from typing import Any

from ..axe import RuleCatalog, rule_catalog
from ..config import A11yConfig
from ..report import shape_rules
from .base import SmartToolError


def get_rules(config: A11yConfig, tags: list[str] | None = None, *, catalog: RuleCatalog | None = None) -> dict[str, Any]:
    """List axe rules, optionally only those carrying any of ``tags``.

    The catalog is read from axe once per process; later calls are served
    from memory without launching a browser.
    """
    catalog = catalog or rule_catalog
    try:
        rules = catalog.rules(config, tags)
    except SmartToolError:
        raise
    except Exception as e:
        raise SmartToolError(tool="get_rules", action="load catalog", reason=str(e)) from e
    return shape_rules(rules)
