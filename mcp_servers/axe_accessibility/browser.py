"""
Per-call browser and page handles.

A ``Browser`` owns one private Chrome process; every tool invocation gets its
own and releases it on the way out:

    with open_page(config) as page:
        page.set_content("<p>hi</p>")
        page.evaluate("() => document.title")
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Generator
from contextlib import contextmanager, suppress
from typing import Any

from .cdp import CdpConnection, CdpError
from .config import A11yConfig
from .http_client import HttpClientError
from .launcher import BrowserLauncher

logger = logging.getLogger("mcp.a11y.browser")

_SET_CONTENT_SCRIPT = """(html) => {
  document.open();
  document.write(html);
  document.close();
}"""

_WAIT_LOAD_SCRIPT = """() => new Promise((resolve) => {
  if (document.readyState === 'complete') { resolve(true); return; }
  window.addEventListener('load', () => resolve(true), { once: true });
})"""


class Page:
    """One page target driven over CDP."""

    def __init__(self, conn: CdpConnection, target_id: str = "", *, navigation_timeout: float = 30.0) -> None:
        self.conn = conn
        self.target_id = target_id
        self.navigation_timeout = navigation_timeout
        self._closed = False

    def enable(self) -> None:
        self.conn.send("Page.enable")
        self.conn.send("Page.setLifecycleEventsEnabled", {"enabled": True})
        self.conn.send("Runtime.enable")

    def set_viewport(self, width: int, height: int) -> None:
        self.conn.send(
            "Emulation.setDeviceMetricsOverride",
            {"width": int(width), "height": int(height), "deviceScaleFactor": 1, "mobile": False},
        )

    def goto(self, url: str, *, timeout: float | None = None) -> None:
        """Navigate and wait until the network has been idle for 500ms."""
        timeout = self.navigation_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        self.conn.clear_events()
        result = self.conn.send("Page.navigate", {"url": url}, timeout=timeout)
        error_text = result.get("errorText")
        if error_text:
            raise HttpClientError(f"{error_text} at {url}")

        loader_id = result.get("loaderId")
        frame_id = result.get("frameId")

        def _is_idle(params: dict[str, Any]) -> bool:
            if params.get("name") != "networkIdle":
                return False
            if loader_id:
                return params.get("loaderId") == loader_id
            return not frame_id or params.get("frameId") == frame_id

        # One budget covers navigate and the idle wait.
        remaining = max(0.0, deadline - time.monotonic())
        if self.conn.wait_for_event("Page.lifecycleEvent", timeout=remaining, predicate=_is_idle) is None:
            raise HttpClientError(f"Navigation timeout of {int(timeout * 1000)} ms exceeded ({url})")

    def set_content(self, html: str, *, timeout: float | None = None) -> None:
        """Replace the document with ``html`` and wait for its load event."""
        timeout = self.navigation_timeout if timeout is None else timeout
        self.evaluate(_SET_CONTENT_SCRIPT, html, timeout=timeout)
        self.evaluate(_WAIT_LOAD_SCRIPT, timeout=timeout)

    def evaluate(self, script: str, *args: Any, timeout: float | None = None) -> Any:
        """Call a JS function source with JSON-serialisable args; return its value."""
        call_args = ", ".join(json.dumps(arg) for arg in args)
        expression = f"({script})({call_args})"
        return self.evaluate_expression(expression, timeout=timeout)

    def evaluate_expression(self, expression: str, *, timeout: float | None = None) -> Any:
        result = self.conn.send(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
            timeout=timeout,
        )
        details = result.get("exceptionDetails")
        if details:
            exc = details.get("exception") if isinstance(details, dict) else None
            message = (exc or {}).get("description") or details.get("text") or "JavaScript evaluation failed"
            raise HttpClientError(str(message).splitlines()[0])

        value = result.get("result")
        if not isinstance(value, dict):
            return None
        # undefined and null both come back without a usable "value".
        if value.get("type") == "undefined" or value.get("subtype") == "null":
            return None
        return value.get("value")

    def add_script(self, source: str, *, timeout: float | None = None) -> None:
        """Evaluate a classic script (e.g. a library bundle) in the page."""
        self.evaluate_expression(source, timeout=timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.conn.close()


class Browser:
    """A private Chrome instance plus the pages opened on it."""

    def __init__(self, config: A11yConfig, launcher: BrowserLauncher | None = None) -> None:
        self.config = config
        self.launcher = launcher or BrowserLauncher(config)
        self._pages: list[Page] = []
        self._closed = False

    @classmethod
    def launch(cls, config: A11yConfig) -> Browser:
        browser = cls(config)
        browser.launcher.launch()
        return browser

    def new_page(self) -> Page:
        target = self.launcher.new_target()
        conn = CdpConnection(target["webSocketDebuggerUrl"], timeout=self.config.cdp_timeout)
        page = Page(conn, str(target.get("id") or ""), navigation_timeout=self.config.navigation_timeout)
        self._pages.append(page)
        try:
            page.enable()
            page.set_viewport(self.config.viewport_width, self.config.viewport_height)
        except CdpError:
            page.close()
            raise
        return page

    def close(self) -> None:
        """Close every page and stop the process. Idempotent, never raises."""
        if self._closed:
            return
        self._closed = True
        for page in self._pages:
            with suppress(Exception):
                page.close()
        try:
            self.launcher.stop()
        except Exception:  # noqa: BLE001
            logger.warning("browser_close_failed", exc_info=True)


@contextmanager
def launch_browser(config: A11yConfig) -> Generator[Browser, None, None]:
    """Launch a browser released exactly once on every exit path."""
    browser = Browser.launch(config)
    try:
        yield browser
    finally:
        browser.close()


@contextmanager
def open_page(config: A11yConfig) -> Generator[Page, None, None]:
    """Launch a browser and yield one viewport-sized page."""
    with launch_browser(config) as browser:
        yield browser.new_page()


__all__ = ["Browser", "Page", "launch_browser", "open_page"]
