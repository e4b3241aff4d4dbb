"""Audit events describing unified report builds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import MutableSequence, Protocol

from ..domain.models import Report
from .audit_log import append_audit_event

REPORT_BUILT_EVENT = "UNIFIED_REPORT_BUILT"


class ReportAuditSink(Protocol):
    """Destination for report audit entries."""

    def emit(self, entry: dict[str, object]) -> None: ...


@dataclass
class InMemoryReportAuditSink:
    """Collects entries in memory; tests read them back."""

    events: MutableSequence[dict[str, object]] = field(default_factory=list)

    def emit(self, entry: dict[str, object]) -> None:
        self.events.append(dict(entry))


class ProductionReportAuditSink:
    """Writes entries to the persistent JSONL audit log."""

    __slots__ = ()

    def emit(self, entry: dict[str, object]) -> None:
        append_audit_event(entry)


_RECENT = InMemoryReportAuditSink()
_PRODUCTION_SINK: ReportAuditSink | None = ProductionReportAuditSink()


def set_production_report_audit_sink(sink: ReportAuditSink | None) -> None:
    """Replace (or with ``None`` disable) the production sink."""

    global _PRODUCTION_SINK
    _PRODUCTION_SINK = sink


def record_report_built(report: Report) -> None:
    """Record that ``report`` was rebuilt, without echoing raw payloads."""

    tools = [
        tool.value
        for tool, available in report.tool_availability.items()
        if available
    ]
    entry: dict[str, object] = {
        "event": REPORT_BUILT_EVENT,
        "content_hash": report.content_hash,
        "tools": sorted(tools),
        "findings_count": len(report.findings),
        "security_score": report.security_score,
        "score_variant": report.score_variant,
    }
    _RECENT.emit(entry)
    if _PRODUCTION_SINK is not None:
        _PRODUCTION_SINK.emit(entry)


def get_report_events() -> list[dict[str, object]]:
    """Return a snapshot of recorded report events."""

    return list(_RECENT.events)


def clear_report_events() -> None:
    """Forget recorded report events."""

    _RECENT.events.clear()
