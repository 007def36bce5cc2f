"""Protocol and tool contract definitions.

This is the single source of truth for:
- supported MCP protocol versions
- server identity
- capabilities advertised by initialize
- the tool list
"""

from __future__ import annotations

import copy
from typing import Any

from .definitions import TOOL_DEFINITIONS

SERVER_INFO: dict[str, str] = {"name": "axe-accessibility-server", "version": "0.1.0"}

SUPPORTED_PROTOCOL_VERSIONS = ["2025-06-18", "2025-03-26", "2024-11-05"]
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]
DEFAULT_PROTOCOL_VERSION = LATEST_PROTOCOL_VERSION

CAPABILITIES: dict[str, Any] = {
    "tools": {"listChanged": False},
}


def select_protocol(requested: Any) -> str:
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return DEFAULT_PROTOCOL_VERSION


def initialize_result(protocol: str) -> dict[str, Any]:
    return {
        "protocolVersion": protocol,
        "serverInfo": dict(SERVER_INFO),
        "capabilities": copy.deepcopy(CAPABILITIES),
        "instructions": "",
    }


def tools_list() -> list[dict[str, Any]]:
    # Copies: the catalog itself is never handed out for mutation.
    return copy.deepcopy(list(TOOL_DEFINITIONS))


def tool_names() -> list[str]:
    return [tool["name"] for tool in TOOL_DEFINITIONS]

