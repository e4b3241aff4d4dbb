"""Compose per-tool payloads into one scored :class:`Report`."""

from __future__ import annotations

from typing import Any, Mapping

from ..domain.models import (
    AppInfo,
    CanonicalSeverity,
    Finding,
    Report,
    Tool,
    empty_summary,
)
from .extractors import SCORED_SECTIONS, ExtractionResult, get_extractor
from .permission_rules import DEFAULT_PERMISSION_RULES, PermissionRuleTable
from .permissions import detect_dangerous_permissions
from .scoring import (
    VARIANT_SECTIONS,
    VARIANT_SUMMARY,
    ScoreInputs,
    SummaryScoreInputs,
    compute_security_score,
    compute_summary_score,
)

TOOL_ORDER: tuple[Tool, ...] = (Tool.MOBSF, Tool.SONARQUBE)
"""Merge order; MobSF findings precede SonarQube findings."""


def _app_info(
    content_hash: str, extractions: Mapping[Tool, ExtractionResult]
) -> AppInfo:
    for tool in TOOL_ORDER:
        extraction = extractions.get(tool)
        if extraction is not None and extraction.app_info is not None:
            return extraction.app_info
    return AppInfo(name="", package="", version="", size="", content_hash=content_hash)


def _score(
    extractions: Mapping[Tool, ExtractionResult],
    summary: Mapping[CanonicalSeverity, int],
    dangerous_count: int,
) -> tuple[int, str]:
    mobsf = extractions.get(Tool.MOBSF)
    if mobsf is not None and mobsf.has_section_summaries:
        inputs = ScoreInputs.from_sections(
            (mobsf.section_counts[name] for name in SCORED_SECTIONS),
            dangerous_count,
        )
        return compute_security_score(inputs), VARIANT_SECTIONS

    good = 0
    if mobsf is not None:
        good = sum(counts.good for counts in mobsf.section_counts.values())
    inputs = SummaryScoreInputs.from_summary(summary, good=good)
    return compute_summary_score(inputs), VARIANT_SUMMARY


def build_unified_report(
    content_hash: str,
    payloads: Mapping[Tool, Any],
    rules: PermissionRuleTable | None = None,
) -> Report:
    """Build the unified report for ``content_hash`` from raw tool payloads.

    Tools missing from ``payloads`` (or mapped to ``None``) are reported as
    unavailable. The per-section score is used when the MobSF payload carries
    section summaries; otherwise the aggregate fallback scores the summary.
    Identical inputs always produce an identical report.
    """

    extractions: dict[Tool, ExtractionResult] = {}
    for tool in TOOL_ORDER:
        payload = payloads.get(tool)
        if payload is None:
            continue
        extractions[tool] = get_extractor(tool).extract(payload, content_hash)

    findings: list[Finding] = []
    binary_findings: list[Finding] = []
    for tool in TOOL_ORDER:
        extraction = extractions.get(tool)
        if extraction is None:
            continue
        findings.extend(extraction.findings)
        binary_findings.extend(extraction.binary_findings)

    summary = empty_summary()
    for finding in findings:
        summary[finding.severity] += 1

    permissions: dict[str, Any] = {}
    for extraction in extractions.values():
        permissions.update(extraction.permissions)
    dangerous = detect_dangerous_permissions(
        permissions, rules or DEFAULT_PERMISSION_RULES
    )

    score, variant = _score(extractions, summary, len(dangerous))

    return Report(
        content_hash=content_hash,
        app_info=_app_info(content_hash, extractions),
        tool_availability={tool: tool in extractions for tool in TOOL_ORDER},
        summary=summary,
        findings=tuple(findings),
        security_score=score,
        score_variant=variant,
        binary_findings=tuple(binary_findings),
        dangerous_permissions=dangerous,
        raw_payloads={tool: payloads[tool] for tool in extractions},
    )
