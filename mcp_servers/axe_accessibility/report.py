"""
Typed view of axe-core results and the shapes returned to MCP clients.

``AccessibilityReport.from_dict`` decodes the raw ``axe.run`` result once;
the ``shape_*`` / ``format_results`` functions project it into the stable
public contract without mutating it.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .color import ContrastAssessment

ORIENTATION_MARKERS = (
    "user-scalable=no",
    "maximum-scale=1.0",
    "orientation=portrait",
    "orientation=landscape",
)
ORIENTATION_WCAG_CRITERIA = "WCAG 2.1 SC 1.3.4 (Orientation)"
ORIENTATION_HELP_URL = "https://www.w3.org/WAI/WCAG21/Understanding/orientation.html"
COLOR_CONTRAST_HELP_URL = "https://dequeuniversity.com/rules/axe/4.10/color-contrast"

_CONTRAST_RE = re.compile(r"contrast ratio of ([0-9.]+)")


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class NodeResult:
    html: str
    target: Any
    failure_summary: str | None = None
    any_checks: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NodeResult:
        return cls(
            html=_as_str(raw.get("html")) or "",
            target=raw.get("target"),
            failure_summary=_as_str(raw.get("failureSummary")),
            any_checks=tuple(check for check in _as_list(raw.get("any")) if isinstance(check, dict)),
        )


@dataclass(frozen=True, slots=True)
class RuleResult:
    id: str
    impact: str | None
    description: str
    help: str
    help_url: str
    tags: tuple[str, ...] = ()
    nodes: tuple[NodeResult, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RuleResult:
        return cls(
            id=_as_str(raw.get("id")) or "",
            impact=_as_str(raw.get("impact")),
            description=_as_str(raw.get("description")) or "",
            help=_as_str(raw.get("help")) or "",
            help_url=_as_str(raw.get("helpUrl")) or "",
            tags=tuple(tag for tag in _as_list(raw.get("tags")) if isinstance(tag, str)),
            nodes=tuple(NodeResult.from_dict(node) for node in _as_list(raw.get("nodes")) if isinstance(node, dict)),
        )


def _rules(raw: Any) -> tuple[RuleResult, ...]:
    return tuple(RuleResult.from_dict(item) for item in _as_list(raw) if isinstance(item, dict))


@dataclass(frozen=True, slots=True)
class AccessibilityReport:
    violations: tuple[RuleResult, ...] = ()
    passes: tuple[RuleResult, ...] = ()
    incomplete: tuple[RuleResult, ...] = ()
    inapplicable: tuple[RuleResult, ...] = ()
    timestamp: str | None = None
    url: str | None = None
    test_engine: dict[str, Any] = field(default_factory=dict)
    test_runner: dict[str, Any] = field(default_factory=dict)
    test_environment: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AccessibilityReport:
        def _mapping(key: str) -> dict[str, Any]:
            value = raw.get(key)
            return dict(value) if isinstance(value, dict) else {}

        return cls(
            violations=_rules(raw.get("violations")),
            passes=_rules(raw.get("passes")),
            incomplete=_rules(raw.get("incomplete")),
            inapplicable=_rules(raw.get("inapplicable")),
            timestamp=_as_str(raw.get("timestamp")),
            url=_as_str(raw.get("url")),
            test_engine=_mapping("testEngine"),
            test_runner=_mapping("testRunner"),
            test_environment=_mapping("testEnvironment"),
        )


def shape_violation(rule: RuleResult, *, apply_defaults: bool = True) -> dict[str, Any]:
    """Project one violation into the public ShapedViolation form."""
    impact = rule.impact
    if apply_defaults and not impact:
        impact = "unknown"
    return {
        "id": rule.id,
        "impact": impact,
        "description": rule.description,
        "help": rule.help,
        "helpUrl": rule.help_url,
        "affectedNodes": [
            {
                "html": node.html,
                "target": node.target,
                "failureSummary": (node.failure_summary or "") if apply_defaults else node.failure_summary,
            }
            for node in rule.nodes
        ],
    }


def format_results(report: AccessibilityReport) -> dict[str, Any]:
    """Default shape for test_accessibility / test_html_string."""
    return {
        "violations": [shape_violation(v) for v in report.violations],
        "passes": len(report.passes),
        "incomplete": len(report.incomplete),
        "inapplicable": len(report.inapplicable),
        "timestamp": report.timestamp,
        "url": report.url,
        "testEngine": {
            "name": report.test_engine.get("name"),
            "version": report.test_engine.get("version"),
        },
        "testRunner": report.test_runner,
        "testEnvironment": report.test_environment,
    }


def shape_aria(report: AccessibilityReport) -> dict[str, Any]:
    return {
        "violations": [shape_violation(v, apply_defaults=False) for v in report.violations],
        "passes": [
            {"id": p.id, "description": p.description, "help": p.help, "nodes": len(p.nodes)}
            for p in report.passes
        ],
    }


def orientation_issues(report: AccessibilityReport) -> list[RuleResult]:
    """meta-viewport violations whose markup restricts zoom or orientation."""
    return [
        v
        for v in report.violations
        if v.id == "meta-viewport"
        and any(marker in node.html for node in v.nodes for marker in ORIENTATION_MARKERS)
    ]


def shape_orientation(report: AccessibilityReport, css_orientation_lock: bool) -> dict[str, Any]:
    issues = orientation_issues(report)
    return {
        "hasOrientationLock": bool(issues) or bool(css_orientation_lock),
        "viewportIssues": [shape_violation(v, apply_defaults=False) for v in issues],
        "hasCssOrientationLock": bool(css_orientation_lock),
        "wcagCriteria": ORIENTATION_WCAG_CRITERIA,
        "helpUrl": ORIENTATION_HELP_URL,
    }


def _check_ratio(node: NodeResult) -> float | None:
    if not node.any_checks:
        return None
    data = node.any_checks[0].get("data")
    if not isinstance(data, dict):
        return None
    ratio = data.get("contrastRatio")
    if isinstance(ratio, (int, float)) and not isinstance(ratio, bool) and ratio > 0:
        return float(ratio)
    return None


def extract_engine_contrast(report: AccessibilityReport) -> tuple[float | None, str]:
    """Best-effort read of axe's own color-contrast ratio.

    Returns (ratio, method); method is "none" when nothing could be read.
    """
    if report.violations and report.violations[0].nodes:
        node = report.violations[0].nodes[0]
        match = _CONTRAST_RE.search(node.failure_summary or "")
        if match:
            try:
                return float(match.group(1).rstrip(".")), "regex"
            except ValueError:
                pass
        ratio = _check_ratio(node)
        if ratio is not None:
            return ratio, "node.any[0].data"
        return None, "none"
    if report.passes and report.passes[0].nodes:
        ratio = _check_ratio(report.passes[0].nodes[0])
        if ratio is not None:
            return ratio, "pass.node.any[0].data"
    return None, "none"


def shape_contrast(
    *,
    foreground: str,
    background: str,
    assessment: ContrastAssessment,
    engine_ratio: float | None,
    engine_method: str,
) -> dict[str, Any]:
    return {
        "foreground": foreground,
        "background": background,
        "foregroundHex": assessment.foreground.hex,
        "backgroundHex": assessment.background.hex,
        "fontSize": assessment.font_size_px,
        "isBold": assessment.is_bold,
        "contrastRatio": assessment.contrast_ratio,
        "extractionMethod": "luminance-calculation",
        "engineContrastRatio": engine_ratio,
        "engineExtractionMethod": engine_method,
        "isLargeText": assessment.is_large_text,
        "passesWCAG2AA": assessment.passes_aa,
        "requiredRatioForAA": assessment.required_ratio_aa,
        "requiredRatioForAAA": assessment.required_ratio_aaa,
        "passesWCAG2AAA": assessment.passes_aaa,
        "helpUrl": COLOR_CONTRAST_HELP_URL,
    }


def shape_rules(rules: Iterable[dict[str, Any]]) -> dict[str, Any]:
    return {
        "rules": [
            {
                "ruleId": rule.get("ruleId"),
                "description": rule.get("description"),
                "help": rule.get("help"),
                "helpUrl": rule.get("helpUrl"),
                "tags": list(rule.get("tags") or []),
            }
            for rule in rules
        ]
    }


__all__ = [
    "AccessibilityReport",
    "NodeResult",
    "RuleResult",
    "extract_engine_contrast",
    "format_results",
    "orientation_issues",
    "shape_aria",
    "shape_contrast",
    "shape_orientation",
    "shape_rules",
    "shape_violation",
]
