"""
MCP server exposing axe-core accessibility testing over JSON-RPC on stdio.

One JSON object per line in each direction. Tool routing lives in
server/registry.py; this module owns framing and the error-code mapping.
"""

from __future__ import annotations

import json
import logging
import os
import signal
import sys
from typing import Any

from .config import A11yConfig
from .errors import ErrorCode, InvalidParamsError, McpError
from .server.contract import initialize_result, select_protocol, tools_list
from .server.registry import create_default_registry
from .tools.base import SmartToolError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("mcp.a11y")

__all__ = ["McpServer", "main"]


def _dump_frame(direction: bytes, line: bytes) -> None:
    if dump_path := os.environ.get("MCP_DUMP_FRAMES"):
        if dump_dir := os.path.dirname(dump_path):
            os.makedirs(dump_dir, exist_ok=True)
        with open(dump_path, "ab") as fp:
            fp.write(direction)
            fp.write(line.rstrip(b"\n") + b"\n")


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    line = (data + "\n").encode()
    _dump_frame(b"--out--\n", line)
    sys.stdout.buffer.write(line)
    sys.stdout.buffer.flush()


def _read_line() -> bytes | None:
    """Read one raw frame from stdin; None at EOF."""
    line = sys.stdin.buffer.readline()
    if not line:
        return None
    return line.strip()


def redact_tool_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    """Shorten arguments for logging: markup becomes a length marker, URLs lose their query."""
    safe_args = dict(arguments)
    html = safe_args.get("html")
    if isinstance(html, str):
        safe_args["html"] = f"<{len(html)} chars>"
    url = safe_args.get("url")
    if isinstance(url, str):
        safe_args["url"] = url.split("?")[0].split("#")[0]
    return safe_args


class McpServer:
    """Protocol front end: routes requests and turns exceptions into JSON-RPC errors."""

    def __init__(self, config: A11yConfig | None = None) -> None:
        self.config = config or A11yConfig.from_env()
        self.registry = create_default_registry()

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": initialize_result(select_protocol(requested))})

    def handle_list_tools(self, request_id: Any) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": {"tools": tools_list()}})

    def _error(self, request_id: Any, error: McpError) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()})

    def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Run one tool and return the MCP result object.

        Raises:
            McpError: MethodNotFound, InvalidParams or InternalError
        """
        if not name or not self.registry.has(name):
            raise McpError(ErrorCode.METHOD_NOT_FOUND, f"Unknown tool: {name}")
        if not isinstance(arguments, dict):
            raise McpError(ErrorCode.INVALID_PARAMS, "Tool arguments must be an object")

        logger.info("tool=%s args=%s", name, redact_tool_arguments(arguments))
        try:
            result = self.registry.dispatch(name, self.config, arguments)
        except InvalidParamsError as e:
            logger.info("invalid_params tool=%s reason=%s", name, e)
            raise McpError(ErrorCode.INVALID_PARAMS, str(e)) from e
        except SmartToolError as e:
            logger.warning("tool_error tool=%s action=%s reason=%s", e.tool, e.action, e.reason)
            data: dict[str, Any] = {"tool": e.tool, "action": e.action}
            if e.suggestion:
                data["suggestion"] = e.suggestion
            raise McpError(
                ErrorCode.INTERNAL_ERROR, f"Failed to perform requested operation: {e.reason}", data
            ) from e
        except Exception as exc:
            logger.exception("tool_call_failed")
            raise McpError(ErrorCode.INTERNAL_ERROR, f"Failed to perform requested operation: {exc}") from exc
        return {"content": result.to_content_list()}

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        try:
            result = self.call_tool(name, arguments)
        except McpError as e:
            self._error(request_id, e)
            return
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": result})

    def dispatch(self, message: dict[str, Any]) -> None:
        """Route one decoded request or notification."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}

        if not isinstance(method, str):
            self._error(request_id, McpError(ErrorCode.INVALID_REQUEST, "Invalid Request"))
        elif method == "initialize":
            self.handle_initialize(request_id, params)
        elif method.startswith("notifications/"):
            return
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name") if isinstance(params, dict) else None
            arguments = (params.get("arguments") or params.get("args") or {}) if isinstance(params, dict) else {}
            self.handle_call_tool(request_id, name or "", arguments)
        elif method == "ping":
            _write_message({"jsonrpc": "2.0", "id": request_id, "result": {}})
        elif request_id is None:
            # Unknown notification: nothing to answer.
            return
        else:
            self._error(request_id, McpError(ErrorCode.METHOD_NOT_FOUND, f"Method {method} not found"))

    def serve(self) -> None:
        logger.info("Axe Accessibility MCP server running on stdio")
        while True:
            line = _read_line()
            if line is None:
                break
            if not line:
                continue
            _dump_frame(b"--in--\n", line)
            try:
                message = json.loads(line.decode())
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                logger.info("parse_error %s", exc)
                self._error(None, McpError(ErrorCode.PARSE_ERROR, "Parse error"))
                continue
            if os.environ.get("MCP_TRACE"):
                logger.info("recv %s", message)
            if not isinstance(message, dict):
                self._error(None, McpError(ErrorCode.INVALID_REQUEST, "Invalid Request"))
                continue
            self.dispatch(message)


def _raise_interrupt(signum: int, frame: Any) -> None:  # noqa: ARG001
    raise KeyboardInterrupt


def main() -> None:
    """Console entry point: serve stdio until EOF or a signal."""
    logger.info("[Setup] Initializing Axe Accessibility MCP server...")
    signal.signal(signal.SIGTERM, _raise_interrupt)
    server = McpServer()
    try:
        server.serve()
    except KeyboardInterrupt:
        logger.info("shutting down")


if __name__ == "__main__":
    main()
