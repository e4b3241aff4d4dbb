"""Finding extraction for each supported analysis tool.

Extractors must satisfy the following invariants:
1. ``extract`` never raises on any JSON-compatible payload; malformed or
   missing sections contribute zero findings.
2. Items whose severity marks a passing check (``secure``/``good``) are counted
   in the section's ``good`` bucket and are never emitted as findings.
3. Binary-hardening results travel in ``binary_findings`` only; they never
   reach ``findings`` and therefore never affect the summary or the score.
4. Output order follows the payload order so rebuilding is reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Protocol

from ..domain.models import AppInfo, CanonicalSeverity, Finding, Tool
from .field_resolution import (
    APP_INFO_FIELDS,
    FINDING_FIELDS,
    resolve_field,
    resolve_mapping,
    resolve_sequence,
    resolve_string_list,
    resolve_text,
)
from .scoring import SectionCounts
from .severity import (
    TOOL_SEVERITY_TABLES,
    SeverityTable,
    is_secure_token,
    normalize_severity,
)

UNKNOWN_TITLE = "Unknown Issue"

SECTION_CERTIFICATE = "certificate"
SECTION_MANIFEST = "manifest"
SECTION_CODE = "code"
SECTION_NETWORK = "network"

SCORED_SECTIONS = (
    SECTION_CERTIFICATE,
    SECTION_MANIFEST,
    SECTION_CODE,
    SECTION_NETWORK,
)
"""Sections whose counts feed the per-section score."""


@dataclass(frozen=True)
class SectionRule:
    """Where one MobSF section lives and how its findings are labelled."""

    name: str
    category: str
    container: tuple[str, ...]
    findings: tuple[str, ...]
    summary: tuple[str, ...]


MOBSF_SECTION_RULES: tuple[SectionRule, ...] = (
    SectionRule(
        name=SECTION_CERTIFICATE,
        category="Certificate Analysis",
        container=("certificate_analysis", "CertificateAnalysis", "certificate"),
        findings=("certificate_findings", "findings"),
        summary=("certificate_summary", "summary"),
    ),
    SectionRule(
        name=SECTION_MANIFEST,
        category="Manifest Analysis",
        container=("manifest_analysis", "Manifest", "manifest"),
        findings=("manifest_findings", "findings"),
        summary=("manifest_summary", "summary"),
    ),
    SectionRule(
        name=SECTION_CODE,
        category="Code Analysis",
        container=("code_analysis", "CodeAnalysis"),
        findings=("findings", "code_findings"),
        summary=("summary", "code_summary"),
    ),
    SectionRule(
        name=SECTION_NETWORK,
        category="Network Security",
        container=("network_security", "network_analysis", "NetworkSecurity"),
        findings=("network_findings", "findings"),
        summary=("network_summary", "summary"),
    ),
)
"""Ordered MobSF section rules; extraction order follows this tuple."""

MOBSF_UNSCORED_LISTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("API Analysis", ("android_api", "api", "api_findings")),
    ("Other Findings", ("vulnerabilities",)),
)
"""(category, aliases) for MobSF findings outside the scored sections."""

MOBSF_BINARY_ALIASES = ("binary_analysis", "BinaryAnalysis")
MOBSF_BINARY_CATEGORY = "Binary Analysis"
MOBSF_PERMISSION_ALIASES = ("permissions", "Permission", "manifest_permissions")

SONAR_ISSUE_ALIASES = ("issues", "findings")
SONAR_DEFAULT_CATEGORY = "Code Quality"

SUMMARY_COUNT_FIELDS: dict[str, tuple[str, ...]] = {
    "high": ("high",),
    "warning": ("warning", "medium"),
    "info": ("info",),
    "good": ("secure", "good"),
}


@dataclass(frozen=True)
class ExtractionResult:
    """Everything one tool payload contributes to a unified report."""

    tool: Tool
    findings: tuple[Finding, ...] = ()
    binary_findings: tuple[Finding, ...] = ()
    section_counts: Mapping[str, SectionCounts] = field(default_factory=dict)
    has_section_summaries: bool = False
    permissions: Mapping[str, Any] = field(default_factory=dict)
    app_info: AppInfo | None = None


class Extractor(Protocol):
    """Extractor contract that every tool integration implements."""

    tool: Tool

    def extract(self, payload: Any, content_hash: str = "") -> ExtractionResult: ...


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return 0


def _summary_counts(summary: Mapping[str, Any]) -> SectionCounts:
    return SectionCounts(
        **{
            bucket: _count(resolve_field(summary, aliases, 0))
            for bucket, aliases in SUMMARY_COUNT_FIELDS.items()
        }
    )


def _bucket_for(severity: CanonicalSeverity) -> str:
    if severity in (CanonicalSeverity.CRITICAL, CanonicalSeverity.HIGH):
        return "high"
    if severity is CanonicalSeverity.MEDIUM:
        return "warning"
    return "info"


def _derived_counts(findings: tuple[Finding, ...], good: int) -> SectionCounts:
    buckets = {"high": 0, "warning": 0, "info": 0}
    for finding in findings:
        buckets[_bucket_for(finding.severity)] += 1
    return SectionCounts(good=good, **buckets)


def _coerce_item(item: Any) -> Mapping[str, Any] | None:
    """Turn list/str shaped items into mappings understood by the alias table."""

    if isinstance(item, Mapping):
        return item
    if isinstance(item, str):
        text = item.strip()
        return {"title": text} if text else None
    if isinstance(item, (list, tuple)):
        # certificate findings arrive as [severity, description, title]
        keys = ("severity", "description", "title")
        return {
            key: value
            for key, value in zip(keys, item)
            if isinstance(value, (str, int, float))
        }
    return None


class _FindingFactory:
    """Build findings for one tool/category pair from alias-resolved items."""

    def __init__(self, tool: Tool, table: SeverityTable) -> None:
        self.tool = tool
        self.table = table

    def build(
        self,
        item: Mapping[str, Any],
        category: str,
        *,
        title: str = "",
        location: str | None = None,
    ) -> tuple[Finding | None, bool]:
        """Return ``(finding, secure)``; secure items yield no finding."""

        token = resolve_text(item, FINDING_FIELDS["severity"], "info")
        if is_secure_token(token, self.table):
            return None, True
        description = resolve_text(item, FINDING_FIELDS["description"])
        resolved_title = (
            title
            or resolve_text(item, FINDING_FIELDS["title"])
            or description
            or UNKNOWN_TITLE
        )
        if location is None:
            location = resolve_text(item, FINDING_FIELDS["location"]) or None
        finding = Finding(
            tool=self.tool,
            category=category,
            title=resolved_title,
            severity=normalize_severity(token, self.table),
            description=description,
            location=location,
            remediation=resolve_text(item, FINDING_FIELDS["remediation"]) or None,
            tags=resolve_string_list(item, FINDING_FIELDS["tags"]),
            cwe=resolve_text(item, FINDING_FIELDS["cwe"]) or None,
            owasp=resolve_text(item, FINDING_FIELDS["owasp"]) or None,
        )
        return finding, False


def _files_location(files: Any) -> str | None:
    if isinstance(files, Mapping):
        names = sorted(str(name) for name in files)
    elif isinstance(files, (list, tuple)):
        names = [str(name) for name in files if isinstance(name, (str, int))]
    else:
        return None
    return ", ".join(names) or None


class MobsfExtractor:
    """Extract findings from a MobSF static-analysis JSON report."""

    tool = Tool.MOBSF

    def __init__(self, table: SeverityTable | None = None) -> None:
        self.table = table or TOOL_SEVERITY_TABLES[Tool.MOBSF]
        self._factory = _FindingFactory(self.tool, self.table)

    def extract(self, payload: Any, content_hash: str = "") -> ExtractionResult:
        if not isinstance(payload, Mapping):
            return ExtractionResult(tool=self.tool)

        findings: list[Finding] = []
        section_counts: dict[str, SectionCounts] = {}
        has_summaries = False
        for rule in MOBSF_SECTION_RULES:
            section_findings, good, summary = self._extract_section(payload, rule)
            findings.extend(section_findings)
            if summary:
                has_summaries = True
                section_counts[rule.name] = _summary_counts(summary)
            else:
                section_counts[rule.name] = _derived_counts(section_findings, good)

        for category, aliases in MOBSF_UNSCORED_LISTS:
            findings.extend(self._extract_keyed(payload, aliases, category))

        return ExtractionResult(
            tool=self.tool,
            findings=tuple(findings),
            binary_findings=self._extract_binary(payload),
            section_counts=section_counts,
            has_section_summaries=has_summaries,
            permissions=resolve_mapping(payload, MOBSF_PERMISSION_ALIASES),
            app_info=self._app_info(payload, content_hash),
        )

    @staticmethod
    def _app_info(payload: Mapping[str, Any], content_hash: str) -> AppInfo:
        return AppInfo(
            name=resolve_text(payload, APP_INFO_FIELDS["name"]),
            package=resolve_text(payload, APP_INFO_FIELDS["package"]),
            version=resolve_text(payload, APP_INFO_FIELDS["version"]),
            size=resolve_text(payload, APP_INFO_FIELDS["size"]),
            content_hash=(
                resolve_text(payload, APP_INFO_FIELDS["content_hash"]) or content_hash
            ),
        )

    def _extract_section(
        self, payload: Mapping[str, Any], rule: SectionRule
    ) -> tuple[tuple[Finding, ...], int, Mapping[str, Any]]:
        container = resolve_field(payload, rule.container)
        if isinstance(container, (list, tuple)):
            # older reports store the findings list directly under the section
            items: Any = container
            summary: Mapping[str, Any] = {}
        elif isinstance(container, Mapping):
            items = resolve_field(container, rule.findings, ())
            summary = resolve_mapping(container, rule.summary)
        else:
            return (), 0, {}

        findings: list[Finding] = []
        good = 0
        for title, item, location in self._iter_items(items):
            finding, secure = self._factory.build(
                item, rule.category, title=title, location=location
            )
            if secure:
                good += 1
            elif finding is not None:
                findings.append(finding)
        return tuple(findings), good, summary

    @staticmethod
    def _iter_items(
        items: Any,
    ) -> Iterator[tuple[str, Mapping[str, Any], str | None]]:
        """Yield ``(title, item, location)`` for list or rule-keyed containers."""

        if isinstance(items, Mapping):
            # code/API analysis: {rule_id: {"metadata": {...}, "files": {...}}}
            for rule_id, entry in items.items():
                if not isinstance(entry, Mapping):
                    continue
                metadata = resolve_mapping(entry, ("metadata",)) or entry
                title = resolve_text(metadata, FINDING_FIELDS["title"]) or str(
                    rule_id
                )
                yield title, metadata, _files_location(entry.get("files"))
        elif isinstance(items, (list, tuple)):
            for raw in items:
                item = _coerce_item(raw)
                if not item:
                    continue
                scope = resolve_string_list(item, ("scope",))
                yield "", item, ", ".join(scope) if scope else None

    def _extract_keyed(
        self, payload: Mapping[str, Any], aliases: tuple[str, ...], category: str
    ) -> tuple[Finding, ...]:
        items = resolve_field(payload, aliases, ())
        findings: list[Finding] = []
        for title, item, location in self._iter_items(items):
            finding, _secure = self._factory.build(
                item, category, title=title, location=location
            )
            if finding is not None:
                findings.append(finding)
        return tuple(findings)

    def _extract_binary(self, payload: Mapping[str, Any]) -> tuple[Finding, ...]:
        findings: list[Finding] = []
        for raw in resolve_sequence(payload, MOBSF_BINARY_ALIASES):
            if not isinstance(raw, Mapping):
                continue
            if resolve_text(raw, FINDING_FIELDS["severity"]):
                finding, _secure = self._factory.build(raw, MOBSF_BINARY_CATEGORY)
                if finding is not None:
                    findings.append(finding)
                continue
            # per-library layout: {"name": "lib/x.so", "nx": {...}, "pie": {...}}
            library = resolve_text(raw, ("name", "file", "library"))
            for check, result in raw.items():
                if not isinstance(result, Mapping):
                    continue
                finding, _secure = self._factory.build(
                    result,
                    MOBSF_BINARY_CATEGORY,
                    title=f"{library}: {check}" if library else str(check),
                    location=library or None,
                )
                if finding is not None:
                    findings.append(finding)
        return tuple(findings)


class SonarQubeExtractor:
    """Extract findings from a SonarQube issues export."""

    tool = Tool.SONARQUBE

    def __init__(self, table: SeverityTable | None = None) -> None:
        self.table = table or TOOL_SEVERITY_TABLES[Tool.SONARQUBE]
        self._factory = _FindingFactory(self.tool, self.table)

    def extract(self, payload: Any, content_hash: str = "") -> ExtractionResult:
        findings: list[Finding] = []
        for issue in resolve_sequence(payload, SONAR_ISSUE_ALIASES):
            if not isinstance(issue, Mapping):
                continue
            finding, _secure = self._factory.build(
                issue,
                resolve_text(issue, ("type", "category"), SONAR_DEFAULT_CATEGORY),
                title=self._title(issue),
                location=self._location(issue),
            )
            if finding is not None:
                findings.append(finding)
        return ExtractionResult(tool=self.tool, findings=tuple(findings))

    @staticmethod
    def _title(issue: Mapping[str, Any]) -> str:
        rule = resolve_text(issue, ("rule", "key"))
        message = resolve_text(issue, ("message", "title"))
        if rule and message:
            return f"{rule}: {message}"
        return message or rule or UNKNOWN_TITLE

    @staticmethod
    def _location(issue: Mapping[str, Any]) -> str | None:
        component = resolve_text(issue, ("component", "file", "path"))
        if not component:
            return None
        line = resolve_text(issue, ("line",))
        return f"{component}:{line}" if line else component


EXTRACTOR_REGISTRY: dict[Tool, type[Extractor]] = {
    Tool.MOBSF: MobsfExtractor,
    Tool.SONARQUBE: SonarQubeExtractor,
}
"""Registry enumerating the extractor implementation for each tool."""


def get_extractor(tool: Tool) -> Extractor:
    """Return a fresh extractor for ``tool``."""

    return EXTRACTOR_REGISTRY[tool]()
