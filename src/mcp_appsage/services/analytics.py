"""Dashboard aggregates across many unified reports."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from ..domain.models import SEVERITY_ORDER, Report, Tool
from .scoring import round_half_up, score_band

TOP_VULNERABILITY_LIMIT = 10
SCORE_BANDS = ("excellent", "good", "fair", "poor")


def summarize_reports(reports: Iterable[Report]) -> dict[str, object]:
    """Aggregate score and severity statistics for the analytics dashboard."""

    reports = list(reports)
    severity_breakdown = {severity.value: 0 for severity in SEVERITY_ORDER}
    score_distribution = {band: 0 for band in SCORE_BANDS}
    tool_distribution = {tool.value: 0 for tool in Tool}
    titles: Counter[str] = Counter()

    for report in reports:
        for severity, count in report.summary.items():
            severity_breakdown[severity.value] += count
        score_distribution[score_band(report.security_score)] += 1
        for finding in report.findings:
            tool_distribution[finding.tool.value] += 1
            titles[finding.title] += 1

    average = 0
    if reports:
        total = sum(report.security_score for report in reports)
        average = round_half_up(total / len(reports))

    ranked = sorted(titles.items(), key=lambda item: (-item[1], item[0]))
    return {
        "totalScans": len(reports),
        "averageScore": average,
        "severityBreakdown": severity_breakdown,
        "scoreDistribution": score_distribution,
        "topVulnerabilities": dict(ranked[:TOP_VULNERABILITY_LIMIT]),
        "toolDistribution": tool_distribution,
    }
