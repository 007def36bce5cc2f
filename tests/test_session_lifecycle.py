"""Every tool call owns one browser and releases it on every exit path."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mcp_servers.axe_accessibility import browser as browser_module
from mcp_servers.axe_accessibility import launcher as launcher_module
from mcp_servers.axe_accessibility.browser import Browser, open_page
from mcp_servers.axe_accessibility.config import A11yConfig
from mcp_servers.axe_accessibility.launcher import BrowserLauncher, BrowserLaunchError
from mcp_servers.axe_accessibility.report import AccessibilityReport
from mcp_servers.axe_accessibility.tools import audit as audit_tool
from mcp_servers.axe_accessibility.tools import orientation as orientation_tool
from mcp_servers.axe_accessibility.tools.base import SmartToolError, loaded_page


class FakeLauncher:
    instances: list[FakeLauncher] = []

    def __init__(self, config: A11yConfig | None = None) -> None:
        self.config = config
        self.launched = 0
        self.stopped = 0
        FakeLauncher.instances.append(self)

    def launch(self) -> None:
        self.launched += 1

    def new_target(self, url: str = "about:blank", timeout: float = 5.0) -> dict[str, Any]:
        return {"id": "T1", "webSocketDebuggerUrl": "ws://127.0.0.1:1/devtools/page/T1"}

    def stop(self, *, timeout: float = 3.0) -> bool:
        self.stopped += 1
        return True


class FakeConn:
    navigate_result: dict[str, Any] = {}
    evaluate_result: dict[str, Any] = {"result": {"type": "undefined"}}
    instances: list[FakeConn] = []

    def __init__(self, ws_url: str, timeout: float = 30.0) -> None:
        self.ws_url = ws_url
        self.closed = 0
        FakeConn.instances.append(self)

    def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
        if method == "Page.navigate":
            return FakeConn.navigate_result
        if method == "Runtime.evaluate":
            return FakeConn.evaluate_result
        return {}

    def clear_events(self) -> None:
        pass

    def wait_for_event(self, name: str, timeout: float = 10.0, predicate: Any = None) -> dict[str, Any] | None:
        return None

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def fake_browser(monkeypatch: pytest.MonkeyPatch) -> A11yConfig:
    FakeLauncher.instances = []
    FakeConn.instances = []
    FakeConn.navigate_result = {}
    FakeConn.evaluate_result = {"result": {"type": "undefined"}}
    monkeypatch.setattr(browser_module, "BrowserLauncher", FakeLauncher)
    monkeypatch.setattr(browser_module, "CdpConnection", FakeConn)
    return A11yConfig(binary_path="chrome", navigation_timeout=0.1)


def test_open_page_releases_browser_on_success(fake_browser: A11yConfig) -> None:
    with open_page(fake_browser) as page:
        assert page.target_id == "T1"
    launcher = FakeLauncher.instances[0]
    assert (launcher.launched, launcher.stopped) == (1, 1)
    assert FakeConn.instances[0].closed == 1


def test_open_page_releases_browser_on_error(fake_browser: A11yConfig) -> None:
    with pytest.raises(RuntimeError, match="tool blew up"):
        with open_page(fake_browser):
            raise RuntimeError("tool blew up")
    assert FakeLauncher.instances[0].stopped == 1
    assert FakeConn.instances[0].closed == 1


def test_browser_close_is_idempotent_and_never_raises(fake_browser: A11yConfig) -> None:
    class BrokenLauncher(FakeLauncher):
        def stop(self, *, timeout: float = 3.0) -> bool:
            self.stopped += 1
            raise OSError("already gone")

    launcher = BrokenLauncher(fake_browser)
    browser = Browser(fake_browser, launcher=launcher)
    browser.close()
    browser.close()
    assert launcher.stopped == 1


def test_loaded_page_wraps_navigation_failure(fake_browser: A11yConfig) -> None:
    FakeConn.navigate_result = {"frameId": "F", "errorText": "net::ERR_CONNECTION_REFUSED"}
    with pytest.raises(SmartToolError) as excinfo:
        with loaded_page(fake_browser, tool="test_accessibility", url="http://127.0.0.1:9/"):
            pytest.fail("body must not run")
    assert excinfo.value.action == "load"
    assert "net::ERR_CONNECTION_REFUSED" in excinfo.value.reason
    assert FakeLauncher.instances[0].stopped == 1


def test_loaded_page_wraps_navigation_timeout(fake_browser: A11yConfig) -> None:
    FakeConn.navigate_result = {"frameId": "F", "loaderId": "L"}
    with pytest.raises(SmartToolError, match="Navigation timeout of 100 ms exceeded"):
        with loaded_page(fake_browser, tool="test_accessibility", url="http://slow.example/"):
            pass
    assert FakeLauncher.instances[0].stopped == 1


def test_audit_failure_still_releases_browser(fake_browser: A11yConfig, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(audit_tool, "load_axe_source", lambda config: "window.axe = undefined;")
    # axe never produces a result object, so analyze fails after the page loaded.
    with pytest.raises(SmartToolError) as excinfo:
        audit_tool.test_html_string(fake_browser, "<p>hello</p>")
    assert excinfo.value.action == "analyze"
    assert FakeLauncher.instances[0].stopped == 1
    assert FakeConn.instances[0].closed == 1


def test_orientation_script_failure_still_releases_browser(
    fake_browser: A11yConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    class StyleSheetErrorConn(FakeConn):
        def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
            if method == "Runtime.evaluate" and "styleSheets" in (params or {}).get("expression", ""):
                return {"exceptionDetails": {"text": "Uncaught", "exception": {"description": "SecurityError: blocked"}}}
            return super().send(method, params, timeout=timeout)

    class EmptyReportBuilder:
        def __init__(self, page: Any, source: str) -> None:
            pass

        def options(self, options: dict[str, Any]) -> EmptyReportBuilder:
            return self

        def analyze(self) -> AccessibilityReport:
            return AccessibilityReport()

    monkeypatch.setattr(browser_module, "CdpConnection", StyleSheetErrorConn)
    monkeypatch.setattr(orientation_tool, "load_axe_source", lambda config: "/* axe */")
    monkeypatch.setattr(orientation_tool, "AxeBuilder", EmptyReportBuilder)
    with pytest.raises(SmartToolError) as excinfo:
        orientation_tool.check_orientation_lock(fake_browser, "<p>hello</p>")
    assert excinfo.value.action == "analyze"
    assert excinfo.value.reason == "SecurityError: blocked"
    assert FakeLauncher.instances[0].stopped == 1
    assert FakeConn.instances[0].closed == 1


def test_disallowed_url_never_launches(fake_browser: A11yConfig) -> None:
    fake_browser.allow_hosts = ["example.com"]
    with pytest.raises(ValueError):
        audit_tool.test_accessibility(fake_browser, "http://internal.corp/")
    assert FakeLauncher.instances == []


# ═══════════════════════════════════════════════════════════════════════════════
# LAUNCHER PROCESS HANDLING
# ═══════════════════════════════════════════════════════════════════════════════


class FakePopen:
    exit_code: int | None = None
    created: list[FakePopen] = []

    def __init__(self, cmd: list[str], **kwargs: Any) -> None:
        self.cmd = cmd
        self.pid = 4242
        self.returncode = FakePopen.exit_code
        self.terminated = False
        FakePopen.created.append(self)

    def poll(self) -> int | None:
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self.returncode = -15

    def wait(self, timeout: float | None = None) -> int:
        return self.returncode or 0

    def kill(self) -> None:
        self.returncode = -9


@pytest.fixture
def fake_popen(monkeypatch: pytest.MonkeyPatch) -> type[FakePopen]:
    FakePopen.exit_code = None
    FakePopen.created = []
    monkeypatch.setattr(launcher_module.subprocess, "Popen", FakePopen)
    monkeypatch.setattr(launcher_module.time, "sleep", lambda s: None)
    return FakePopen


def test_launch_succeeds_when_cdp_answers(fake_popen: type[FakePopen], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(BrowserLauncher, "cdp_ready", lambda self, timeout=0.4: True)
    launcher = BrowserLauncher(A11yConfig(binary_path="/usr/bin/chrome"))
    result = launcher.launch()
    assert result.port == launcher.port
    assert Path(result.profile_dir).is_dir()
    assert f"--user-data-dir={result.profile_dir}" in fake_popen.created[0].cmd

    launcher.stop()
    assert fake_popen.created[0].terminated
    assert not Path(result.profile_dir).exists()


def test_launch_times_out_and_cleans_up(fake_popen: type[FakePopen], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(BrowserLauncher, "cdp_ready", lambda self, timeout=0.4: False)
    launcher = BrowserLauncher(A11yConfig(binary_path="/usr/bin/chrome", launch_timeout=0.2))
    with pytest.raises(BrowserLaunchError, match="timed out"):
        launcher.launch()
    assert fake_popen.created[0].terminated
    assert launcher.profile_dir and not Path(launcher.profile_dir).exists()


def test_launch_reports_early_exit(fake_popen: type[FakePopen], monkeypatch: pytest.MonkeyPatch) -> None:
    fake_popen.exit_code = 1
    monkeypatch.setattr(BrowserLauncher, "cdp_ready", lambda self, timeout=0.4: False)
    launcher = BrowserLauncher(A11yConfig(binary_path="/usr/bin/chrome"))
    with pytest.raises(BrowserLaunchError, match="exited during startup"):
        launcher.launch()


def test_launch_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(*args: Any, **kwargs: Any) -> None:
        raise FileNotFoundError("No such file or directory: '/nope/chrome'")

    monkeypatch.setattr(launcher_module.subprocess, "Popen", missing)
    launcher = BrowserLauncher(A11yConfig(binary_path="/nope/chrome"))
    with pytest.raises(BrowserLaunchError, match="Failed to launch browser"):
        launcher.launch()
    assert launcher.profile_dir and not Path(launcher.profile_dir).exists()
