"""Table-driven mapping from tool severity vocabularies to the canonical scale."""

from __future__ import annotations

from dataclasses import dataclass

from ..domain.models import CanonicalSeverity, Tool


@dataclass(frozen=True)
class SeverityRule:
    """Map any token containing ``keyword`` to ``severity``."""

    keyword: str
    severity: CanonicalSeverity


@dataclass(frozen=True)
class SeverityTable:
    """Ordered keyword rules; the first rule whose keyword occurs wins.

    Tokens equal to one of ``secure_tokens`` describe passing checks. They
    normalize to ``info`` but extractors count them apart instead of emitting
    findings.
    """

    rules: tuple[SeverityRule, ...]
    secure_tokens: tuple[str, ...] = ()
    fallback: CanonicalSeverity = CanonicalSeverity.INFO

    def extended(self, *rules: SeverityRule) -> "SeverityTable":
        """Return a copy whose extra ``rules`` are tried before the existing ones."""

        return SeverityTable(
            rules=tuple(rules) + self.rules,
            secure_tokens=self.secure_tokens,
            fallback=self.fallback,
        )


DEFAULT_SEVERITY_TABLE = SeverityTable(
    rules=(
        SeverityRule("critical", CanonicalSeverity.CRITICAL),
        SeverityRule("blocker", CanonicalSeverity.CRITICAL),
        SeverityRule("high", CanonicalSeverity.HIGH),
        SeverityRule("major", CanonicalSeverity.HIGH),
        SeverityRule("warn", CanonicalSeverity.MEDIUM),
        SeverityRule("medium", CanonicalSeverity.MEDIUM),
        SeverityRule("minor", CanonicalSeverity.MEDIUM),
        SeverityRule("low", CanonicalSeverity.LOW),
    ),
    secure_tokens=("secure", "good"),
)
"""Vocabulary shared by MobSF (high/warning/info/secure) and SonarQube
(BLOCKER/CRITICAL/MAJOR/MINOR/INFO)."""

TOOL_SEVERITY_TABLES: dict[Tool, SeverityTable] = {
    Tool.MOBSF: DEFAULT_SEVERITY_TABLE,
    Tool.SONARQUBE: DEFAULT_SEVERITY_TABLE,
}
"""Per-tool tables; new integrations register here instead of branching."""


def _token(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_severity(
    token: object, table: SeverityTable = DEFAULT_SEVERITY_TABLE
) -> CanonicalSeverity:
    """Return the canonical severity for a free-form, case-insensitive token."""

    text = _token(token)
    for rule in table.rules:
        if rule.keyword in text:
            return rule.severity
    return table.fallback


def is_secure_token(
    token: object, table: SeverityTable = DEFAULT_SEVERITY_TABLE
) -> bool:
    """Return True when ``token`` marks a passing check rather than an issue."""

    return _token(token) in table.secure_tokens


def severity_for_tool(tool: Tool, token: object) -> CanonicalSeverity:
    """Normalize ``token`` with the table registered for ``tool``."""

    table = TOOL_SEVERITY_TABLES.get(tool, DEFAULT_SEVERITY_TABLE)
    return normalize_severity(token, table)
