"""Argument validation shared by tool handlers.

Clients are not trusted to enforce the input schema, so every handler checks
its own arguments and raises InvalidParamsError on anything malformed.
"""

from __future__ import annotations

import math
from typing import Any

from ...errors import InvalidParamsError


def require_string(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidParamsError(f"Missing required parameter: {key}")
    if not isinstance(value, str):
        raise InvalidParamsError(f"Parameter '{key}' must be a string")
    return value


def optional_tags(args: dict[str, Any], key: str = "tags") -> list[str] | None:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise InvalidParamsError(f"Parameter '{key}' must be an array of strings")
    tags = [tag.strip() for tag in value if tag.strip()]
    return tags or None


def optional_number(args: dict[str, Any], key: str, default: float) -> float:
    value = args.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParamsError(f"Parameter '{key}' must be a number")
    if not math.isfinite(value) or value <= 0:
        raise InvalidParamsError(f"Parameter '{key}' must be a positive number")
    return value


def optional_bool(args: dict[str, Any], key: str, default: bool) -> bool:
    value = args.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise InvalidParamsError(f"Parameter '{key}' must be a boolean")
    return value
