"""
Error taxonomy surfaced at the JSON-RPC boundary.

Handlers raise ``InvalidParamsError`` for anything the client got wrong.
Every other exception escaping a tool call is reported as an internal error.
"""

from __future__ import annotations

from typing import Any


class ErrorCode:
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class McpError(Exception):
    """JSON-RPC error with a protocol error code."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


class InvalidParamsError(ValueError):
    """Required argument missing or malformed."""


__all__ = ["ErrorCode", "InvalidParamsError", "McpError"]
