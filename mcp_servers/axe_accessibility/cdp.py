"""Raw Chrome DevTools Protocol connection over websocket-client."""

from __future__ import annotations

import json
import socket
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Any

import websocket

from .http_client import HttpClientError

EventPredicate = Callable[[dict[str, Any]], bool]


class CdpError(HttpClientError):
    """CDP command failed, timed out, or the socket broke."""


def _is_timeout(exc: Exception) -> bool:
    if isinstance(exc, (TimeoutError, websocket.WebSocketTimeoutException)):
        return True
    return "timed out" in str(exc).lower()


class CdpConnection:
    """Low-level CDP WebSocket connection bound to one target."""

    def __init__(self, ws_url: str, timeout: float = 30.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=min(timeout, 10.0), suppress_origin=True)
        except (OSError, websocket.WebSocketException) as exc:
            raise CdpError(f"CDP connect failed ({ws_url}): {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        # Events received while waiting for a command response are kept for later waits.
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 2000

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def pop_event(self, event_name: str, predicate: EventPredicate | None = None) -> dict[str, Any] | None:
        """Pop the oldest queued event params matching name (and predicate)."""
        for i, ev in enumerate(self._event_queue):
            if ev.get("method") != event_name:
                continue
            params = ev.get("params")
            params = params if isinstance(params, dict) else {}
            if predicate is not None and not predicate(params):
                continue
            self._event_queue.pop(i)
            return params
        return None

    def clear_events(self) -> None:
        self._event_queue.clear()

    def _recv(self, remaining: float) -> dict[str, Any] | None:
        """Receive one frame; None on a poll timeout or an undecodable frame."""
        try:
            self.ws.settimeout(min(0.5, remaining))
            raw = self.ws.recv()
        except Exception as exc:  # noqa: BLE001
            if _is_timeout(exc):
                return None
            raise CdpError(str(exc)) from exc
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
        """Send CDP command and wait for its response."""
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params

        try:
            self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except Exception as exc:  # noqa: BLE001
            raise CdpError(f"{method}: {exc}") from exc

        return self._recv_until(msg_id, method, self.timeout if timeout is None else timeout)

    def _recv_until(self, expected_id: int, method: str, timeout: float) -> dict[str, Any]:
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CdpError(f"CDP response timed out ({method}, {timeout:g}s)")

            data = self._recv(remaining)
            if data is None:
                continue

            if isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                continue

            if data.get("id") == expected_id:
                if "error" in data:
                    error = data["error"]
                    message = error.get("message") if isinstance(error, dict) else str(error)
                    raise CdpError(f"{method}: {message}")
                result = data.get("result")
                return result if isinstance(result, dict) else {}

    def wait_for_event(
        self,
        event_name: str,
        timeout: float = 10.0,
        predicate: EventPredicate | None = None,
    ) -> dict[str, Any] | None:
        """Wait for a CDP event; returns its params or None on timeout."""
        queued = self.pop_event(event_name, predicate)
        if queued is not None:
            return queued

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None

            data = self._recv(remaining)
            if data is None:
                continue
            if not isinstance(data.get("method"), str) or "id" in data:
                continue

            params = data.get("params")
            params = params if isinstance(params, dict) else {}
            if data["method"] == event_name and (predicate is None or predicate(params)):
                return params
            self._push_event(data)

    def close(self) -> None:
        """Close the WebSocket connection (best-effort)."""
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
        with suppress(Exception):
            self.ws.close(timeout=1)


__all__ = ["CdpConnection", "CdpError"]
