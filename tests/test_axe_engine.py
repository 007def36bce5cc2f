"""axe-core bundle resolution, run options and the rule catalog."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mcp_servers.axe_accessibility import axe as axe_module
from mcp_servers.axe_accessibility.axe import (
    AxeBuilder,
    AxeRunError,
    AxeSourceError,
    RuleCatalog,
    filter_rules,
    load_axe_source,
)
from mcp_servers.axe_accessibility.config import A11yConfig
from mcp_servers.axe_accessibility.http_client import HttpClientError
from mcp_servers.axe_accessibility.tools.aria import ARIA_RULES

AXE_STUB = b"/*! axe v4.10.2 */ window.axe = { run: function () {}, getRules: function () { return []; } };"


@pytest.fixture(autouse=True)
def _fresh_source_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(axe_module, "_source_cache", {})


class FakePage:
    def __init__(self, result: Any) -> None:
        self.result = result
        self.scripts: list[str] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def add_script(self, source: str) -> None:
        self.scripts.append(source)

    def evaluate(self, script: str, *args: Any) -> Any:
        self.calls.append((script, args))
        return self.result


# ═══════════════════════════════════════════════════════════════════════════════
# RUN OPTIONS
# ═══════════════════════════════════════════════════════════════════════════════


def test_build_options_without_filters_is_empty() -> None:
    assert AxeBuilder(FakePage({}), "").with_tags(None).build_options() == {}
    assert AxeBuilder(FakePage({}), "").with_tags([]).build_options() == {}


def test_build_options_tags() -> None:
    opts = AxeBuilder(FakePage({}), "").with_tags(["wcag2a", "wcag2aa"]).build_options()
    assert opts == {"runOnly": {"type": "tag", "values": ["wcag2a", "wcag2aa"]}}


def test_build_options_rules_take_priority_over_tags() -> None:
    builder = AxeBuilder(FakePage({}), "").with_tags(["wcag2a"]).with_rules(ARIA_RULES)
    opts = builder.build_options()
    assert opts["runOnly"]["type"] == "rule"
    assert opts["runOnly"]["values"] == list(ARIA_RULES)


def test_build_options_merges_explicit_options() -> None:
    opts = AxeBuilder(FakePage({}), "").options({"rules": {"meta-viewport": {"enabled": True}}}).build_options()
    assert opts == {"rules": {"meta-viewport": {"enabled": True}}}


def test_analyze_injects_source_and_decodes_report() -> None:
    raw = {
        "violations": [{"id": "image-alt", "impact": "critical", "nodes": [{"html": "<img>", "target": ["img"]}]}],
        "passes": [],
        "testEngine": {"name": "axe-core", "version": "4.10.2"},
    }
    page = FakePage(raw)
    report = AxeBuilder(page, "SRC").with_tags(["wcag2a"]).analyze()
    assert page.scripts == ["SRC"]
    assert page.calls[0][1] == ({"runOnly": {"type": "tag", "values": ["wcag2a"]}},)
    assert report.violations[0].id == "image-alt"
    assert report.test_engine["version"] == "4.10.2"


def test_analyze_rejects_non_object_result() -> None:
    with pytest.raises(AxeRunError):
        AxeBuilder(FakePage(None), "SRC").analyze()


# ═══════════════════════════════════════════════════════════════════════════════
# RULE CATALOG
# ═══════════════════════════════════════════════════════════════════════════════

RULES = [
    {"ruleId": "image-alt", "tags": ["cat.text-alternatives", "wcag2a", "wcag111"]},
    {"ruleId": "color-contrast", "tags": ["cat.color", "wcag2aa", "wcag143"]},
    {"ruleId": "region", "tags": ["cat.keyboard", "best-practice"]},
    {"ruleId": "untagged"},
]


def test_filter_rules_matches_any_tag() -> None:
    assert [r["ruleId"] for r in filter_rules(RULES, ["wcag2a", "best-practice"])] == ["image-alt", "region"]
    assert [r["ruleId"] for r in filter_rules(RULES, ["nonexistent"])] == []
    assert len(filter_rules(RULES, None)) == len(RULES)
    assert len(filter_rules(RULES, [])) == len(RULES)


def test_rule_catalog_loads_once() -> None:
    calls: list[A11yConfig] = []

    def loader(config: A11yConfig) -> list[dict[str, Any]]:
        calls.append(config)
        return RULES

    catalog = RuleCatalog(loader=loader)
    cfg = A11yConfig(binary_path="chrome")
    assert not catalog.loaded
    assert len(catalog.rules(cfg)) == 4
    assert [r["ruleId"] for r in catalog.rules(cfg, ["wcag2aa"])] == ["color-contrast"]
    assert catalog.loaded
    assert len(calls) == 1

    catalog.reset()
    catalog.rules(cfg)
    assert len(calls) == 2


def test_rule_catalog_failed_load_is_retried() -> None:
    attempts = [0]

    def flaky(config: A11yConfig) -> list[dict[str, Any]]:
        attempts[0] += 1
        if attempts[0] == 1:
            raise RuntimeError("browser failed")
        return RULES

    catalog = RuleCatalog(loader=flaky)
    cfg = A11yConfig(binary_path="chrome")
    with pytest.raises(RuntimeError):
        catalog.rules(cfg)
    assert not catalog.loaded
    assert len(catalog.rules(cfg)) == 4


# ═══════════════════════════════════════════════════════════════════════════════
# BUNDLE RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════════


def test_load_axe_source_from_local_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    bundle = tmp_path / "axe.min.js"
    bundle.write_bytes(AXE_STUB)
    monkeypatch.setattr(axe_module, "http_get_bytes", lambda *args, **kwargs: pytest.fail("must not download"))
    cfg = A11yConfig(binary_path="chrome", axe_source_path=str(bundle), axe_cache_dir=str(tmp_path / "cache"))
    assert load_axe_source(cfg) == AXE_STUB.decode()


def test_load_axe_source_missing_file(tmp_path: Path) -> None:
    cfg = A11yConfig(binary_path="chrome", axe_source_path=str(tmp_path / "missing.js"))
    with pytest.raises(AxeSourceError, match="Cannot read"):
        load_axe_source(cfg)


def test_load_axe_source_downloads_then_uses_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    downloads: list[str] = []

    def fake_get(url: str, timeout: float) -> bytes:
        downloads.append(url)
        return AXE_STUB

    monkeypatch.setattr(axe_module, "http_get_bytes", fake_get)
    cfg = A11yConfig(binary_path="chrome", axe_cache_dir=str(tmp_path / "cache"))

    assert load_axe_source(cfg) == AXE_STUB.decode()
    assert load_axe_source(cfg) == AXE_STUB.decode()
    assert downloads == [cfg.axe_url]
    cached = list((tmp_path / "cache").glob("axe-*.min.js"))
    assert len(cached) == 1

    # A new process reads the cached copy instead of downloading.
    monkeypatch.setattr(axe_module, "_source_cache", {})
    monkeypatch.setattr(axe_module, "http_get_bytes", lambda *args, **kwargs: pytest.fail("must not download"))
    assert load_axe_source(cfg) == AXE_STUB.decode()


def test_load_axe_source_download_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def offline(url: str, timeout: float) -> bytes:
        raise HttpClientError("<urlopen error [Errno -3] Temporary failure in name resolution>")

    monkeypatch.setattr(axe_module, "http_get_bytes", offline)
    cfg = A11yConfig(binary_path="chrome", axe_cache_dir=str(tmp_path / "cache"))
    with pytest.raises(AxeSourceError, match="Cannot download axe-core"):
        load_axe_source(cfg)


def test_load_axe_source_rejects_non_axe_payload(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(axe_module, "http_get_bytes", lambda url, timeout: b"<html>captive portal</html>")
    cfg = A11yConfig(binary_path="chrome", axe_cache_dir=str(tmp_path / "cache"))
    with pytest.raises(AxeSourceError, match="does not look like axe-core"):
        load_axe_source(cfg)
    assert not (tmp_path / "cache").exists()
