"""
Tool handlers grouped by concern.

Each handler validates its own arguments, calls the matching tool and wraps
the payload in a ToolResult.
"""

from __future__ import annotations

from .audit import AUDIT_HANDLERS
from .checks import CHECK_HANDLERS

ALL_HANDLERS = {
    **AUDIT_HANDLERS,
    **CHECK_HANDLERS,
}

__all__ = ["ALL_HANDLERS", "AUDIT_HANDLERS", "CHECK_HANDLERS"]
