"""Structural diff between two unified reports.

Findings are matched on ``(tool, category, title)``, exactly and
case-sensitively. Several findings sharing one identity inside a report
collapse onto the first of them, so the diff is coarser for such reports;
no fuzzy matching is attempted.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.models import ComparisonResult, Finding, Report, SeverityChange


def finding_identity(finding: Finding) -> tuple[str, str, str]:
    """Key used to match a finding across two reports."""

    return finding.identity


def _index(findings: Iterable[Finding]) -> dict[tuple[str, str, str], Finding]:
    indexed: dict[tuple[str, str, str], Finding] = {}
    for finding in findings:
        indexed.setdefault(finding_identity(finding), finding)
    return indexed


def compare_reports(report_a: Report, report_b: Report) -> ComparisonResult:
    """Diff ``report_b`` (newer) against ``report_a`` (baseline)."""

    baseline = _index(report_a.findings)
    current = _index(report_b.findings)

    new_findings = tuple(
        finding
        for finding in report_b.findings
        if finding_identity(finding) not in baseline
    )
    resolved_findings = tuple(
        finding
        for finding in report_a.findings
        if finding_identity(finding) not in current
    )

    changes: list[SeverityChange] = []
    for key, finding in current.items():
        previous = baseline.get(key)
        if previous is None or previous.severity is finding.severity:
            continue
        changes.append(
            SeverityChange(
                tool=finding.tool,
                category=finding.category,
                title=finding.title,
                old_severity=previous.severity,
                new_severity=finding.severity,
            )
        )

    return ComparisonResult(
        report_a=report_a,
        report_b=report_b,
        new_findings=new_findings,
        resolved_findings=resolved_findings,
        changed_severity_findings=tuple(changes),
        score_delta=report_b.security_score - report_a.security_score,
    )
