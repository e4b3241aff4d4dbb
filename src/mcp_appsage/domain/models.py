"""Core entities without I/O for AppSage MCP."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Tool(Enum):
    """Analysis tools whose findings feed a unified report."""

    MOBSF = "MobSF"
    SONARQUBE = "SonarQube"


class CanonicalSeverity(Enum):
    """Five-level risk scale every tool vocabulary is folded into."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Higher rank means higher risk."""

        return _SEVERITY_RANK[self]

    @classmethod
    def from_wire(cls, value: object) -> "CanonicalSeverity":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INFO


_SEVERITY_RANK = {
    CanonicalSeverity.CRITICAL: 4,
    CanonicalSeverity.HIGH: 3,
    CanonicalSeverity.MEDIUM: 2,
    CanonicalSeverity.LOW: 1,
    CanonicalSeverity.INFO: 0,
}

SEVERITY_ORDER = tuple(
    sorted(CanonicalSeverity, key=lambda severity: severity.rank, reverse=True)
)
"""Canonical severities from most to least risky."""


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class Finding:
    """A single normalized issue reported by one analysis tool."""

    tool: Tool
    category: str
    title: str
    severity: CanonicalSeverity
    description: str = ""
    location: str | None = None
    remediation: str | None = None
    tags: tuple[str, ...] = ()
    cwe: str | None = None
    owasp: str | None = None

    def __post_init__(self) -> None:
        # tags behave as an ordered set
        object.__setattr__(self, "tags", tuple(dict.fromkeys(self.tags)))

    @property
    def identity(self) -> tuple[str, str, str]:
        return (self.tool.value, self.category, self.title)

    def to_mapping(self) -> dict[str, object]:
        return {
            "tool": self.tool.value,
            "category": self.category,
            "title": self.title,
            "severity": self.severity.value,
            "description": self.description,
            "location": self.location,
            "remediation": self.remediation,
            "tags": list(self.tags),
            "cwe": self.cwe,
            "owasp": self.owasp,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Finding":
        return cls(
            tool=Tool(data["tool"]),
            category=str(data.get("category", "")),
            title=str(data.get("title", "")),
            severity=CanonicalSeverity.from_wire(data.get("severity")),
            description=str(data.get("description") or ""),
            location=_optional_text(data.get("location")),
            remediation=_optional_text(data.get("remediation")),
            tags=tuple(str(tag) for tag in data.get("tags") or ()),
            cwe=_optional_text(data.get("cwe")),
            owasp=_optional_text(data.get("owasp")),
        )


@dataclass(frozen=True)
class AppInfo:
    """Identity of the scanned artifact."""

    name: str
    package: str
    version: str
    size: str
    content_hash: str

    def to_mapping(self) -> dict[str, str]:
        return {
            "name": self.name,
            "package": self.package,
            "version": self.version,
            "size": self.size,
            "contentHash": self.content_hash,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AppInfo":
        return cls(
            name=str(data.get("name", "")),
            package=str(data.get("package", "")),
            version=str(data.get("version", "")),
            size=str(data.get("size", "")),
            content_hash=str(data.get("contentHash", "")),
        )


@dataclass(frozen=True)
class DangerousPermission:
    """A permission flagged by name or descriptor as granting sensitive access."""

    name: str
    descriptor: str

    def to_mapping(self) -> dict[str, str]:
        return {"name": self.name, "descriptor": self.descriptor}


def empty_summary() -> dict[CanonicalSeverity, int]:
    return {severity: 0 for severity in SEVERITY_ORDER}


@dataclass(frozen=True)
class Report:
    """Merged, scored aggregate of every available tool finding for one artifact."""

    content_hash: str
    app_info: AppInfo
    tool_availability: Mapping[Tool, bool]
    summary: Mapping[CanonicalSeverity, int]
    findings: tuple[Finding, ...]
    security_score: int
    score_variant: str
    binary_findings: tuple[Finding, ...] = ()
    dangerous_permissions: tuple[DangerousPermission, ...] = ()
    raw_payloads: Mapping[Tool, Any] = field(default_factory=dict)

    @property
    def total_issues(self) -> int:
        return sum(self.summary.values())

    def to_mapping(self) -> dict[str, object]:
        from ..services.scoring import score_rating

        summary: dict[str, int] = {
            severity.value: int(self.summary.get(severity, 0))
            for severity in SEVERITY_ORDER
        }
        summary["totalIssues"] = self.total_issues
        return {
            "contentHash": self.content_hash,
            "appInfo": self.app_info.to_mapping(),
            "toolAvailability": {
                tool.value: bool(self.tool_availability.get(tool, False))
                for tool in Tool
            },
            "summary": summary,
            "findings": [finding.to_mapping() for finding in self.findings],
            "binaryFindings": [
                finding.to_mapping() for finding in self.binary_findings
            ],
            "dangerousPermissions": [
                permission.to_mapping() for permission in self.dangerous_permissions
            ],
            "scoreVariant": self.score_variant,
            "securityScore": self.security_score,
            "security_score": self.security_score,
            "rating": score_rating(self.security_score),
            "rawReports": {
                tool.value: self.raw_payloads.get(tool) for tool in Tool
            },
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Report":
        summary = data.get("summary") or {}
        availability = data.get("toolAvailability") or {}
        raw_reports = data.get("rawReports") or {}
        score = data.get("securityScore", data.get("security_score", 0))
        return cls(
            content_hash=str(data["contentHash"]),
            app_info=AppInfo.from_mapping(data.get("appInfo") or {}),
            tool_availability={
                tool: bool(availability.get(tool.value, False)) for tool in Tool
            },
            summary={
                severity: int(summary.get(severity.value, 0))
                for severity in SEVERITY_ORDER
            },
            findings=tuple(
                Finding.from_mapping(item) for item in data.get("findings") or ()
            ),
            security_score=int(score),
            score_variant=str(data.get("scoreVariant", "")),
            binary_findings=tuple(
                Finding.from_mapping(item)
                for item in data.get("binaryFindings") or ()
            ),
            dangerous_permissions=tuple(
                DangerousPermission(
                    name=str(item.get("name", "")),
                    descriptor=str(item.get("descriptor", "")),
                )
                for item in data.get("dangerousPermissions") or ()
            ),
            raw_payloads={
                tool: raw_reports[tool.value]
                for tool in Tool
                if raw_reports.get(tool.value) is not None
            },
        )


@dataclass(frozen=True)
class SeverityChange:
    """A finding present in both reports whose canonical severity moved."""

    tool: Tool
    category: str
    title: str
    old_severity: CanonicalSeverity
    new_severity: CanonicalSeverity

    @property
    def escalated(self) -> bool:
        return self.new_severity.rank > self.old_severity.rank

    def to_mapping(self) -> dict[str, object]:
        return {
            "tool": self.tool.value,
            "category": self.category,
            "title": self.title,
            "oldSeverity": self.old_severity.value,
            "newSeverity": self.new_severity.value,
        }


def _report_reference(report: Report) -> dict[str, object]:
    return {
        "contentHash": report.content_hash,
        "appInfo": report.app_info.to_mapping(),
        "securityScore": report.security_score,
        "findingsCount": len(report.findings),
    }


@dataclass(frozen=True)
class ComparisonResult:
    """Structural diff between two reports; always recomputable, never stored."""

    report_a: Report
    report_b: Report
    new_findings: tuple[Finding, ...]
    resolved_findings: tuple[Finding, ...]
    changed_severity_findings: tuple[SeverityChange, ...]
    score_delta: int

    def to_mapping(self) -> dict[str, object]:
        return {
            "reportA": _report_reference(self.report_a),
            "reportB": _report_reference(self.report_b),
            "newFindings": [finding.to_mapping() for finding in self.new_findings],
            "resolvedFindings": [
                finding.to_mapping() for finding in self.resolved_findings
            ],
            "changedSeverityFindings": [
                change.to_mapping() for change in self.changed_severity_findings
            ],
            "scoreDelta": self.score_delta,
        }
