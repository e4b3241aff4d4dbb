"""Unit coverage for the JSONL audit sink."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from mcp_appsage.services.audit_log import (
    DEFAULT_MAX_AUDIT_BYTES,
    AuditConfig,
    JsonlAuditSink,
    _parse_max_bytes,
    append_audit_event,
    get_audit_sink,
    set_audit_sink,
)


@pytest.fixture(autouse=True)
def reset_sink() -> None:
    """Never leak an installed sink into other tests."""

    yield
    set_audit_sink(None)


def _sample_event() -> dict[str, object]:
    return {
        "event": "UNIFIED_REPORT_BUILT",
        "content_hash": "3f2a9c1e7b",
        "tools": ["MobSF"],
        "findings_count": 4,
        "security_score": 46,
        "score_variant": "sections",
    }


class TimeStub:
    def __init__(self, values: list[float]) -> None:
        self.values = values

    def __call__(self) -> float:
        if self.values:
            return self.values.pop(0)
        return 999.0


def test_append_writes_sorted_json_lines(tmp_path: Path) -> None:
    audit_file = tmp_path / "audit" / "audit.jsonl"
    set_audit_sink(JsonlAuditSink(AuditConfig(audit_file=audit_file, max_bytes=None)))

    append_audit_event(_sample_event())
    append_audit_event(_sample_event())

    lines = audit_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0]) == _sample_event()
    assert lines[0].startswith('{"content_hash"')


def test_append_rotates_when_limit_exceeded(tmp_path: Path) -> None:
    audit_dir = tmp_path / "audit"
    audit_file = audit_dir / "audit.jsonl"
    audit_dir.mkdir(parents=True)
    audit_file.write_text("old-value", encoding="utf-8")
    set_audit_sink(JsonlAuditSink(AuditConfig(audit_file=audit_file, max_bytes=1)))

    append_audit_event(_sample_event())

    rotated = audit_file.with_name(audit_file.name + ".1")
    assert rotated.read_text(encoding="utf-8") == "old-value"
    assert json.loads(audit_file.read_text(encoding="utf-8")) == _sample_event()


def test_append_handles_unwritable_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    audit_file = tmp_path / "audit.jsonl"
    sink = JsonlAuditSink(AuditConfig(audit_file=audit_file, max_bytes=None))

    def fail_open(self: Path, *args: object, **kwargs: object) -> None:
        raise OSError("no space")

    monkeypatch.setattr("mcp_appsage.services.audit_log.Path.open", fail_open)
    caplog.set_level(logging.WARNING)

    sink.emit(_sample_event())

    assert any(
        "Unable to write audit event" in record.getMessage()
        for record in caplog.records
    )


def test_warning_rate_limiting(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    audit_file = tmp_path / "audit" / "audit.jsonl"
    sink = JsonlAuditSink(
        AuditConfig(audit_file=audit_file, max_bytes=None),
        warning_interval=10.0,
        clock=TimeStub([1.0, 1.0, 12.0]),
    )

    def fail_mkdir(self: Path, *args: object, **kwargs: object) -> None:
        raise OSError("boom")

    monkeypatch.setattr("mcp_appsage.services.audit_log.Path.mkdir", fail_mkdir)
    caplog.set_level(logging.WARNING)

    for _ in range(3):
        sink.emit(_sample_event())

    warnings = [
        record
        for record in caplog.records
        if "Unable to create audit directory" in record.getMessage()
    ]
    assert len(warnings) == 2


def test_zero_interval_logs_every_failure(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    sink = JsonlAuditSink(
        AuditConfig(audit_file=tmp_path / "a" / "audit.jsonl", max_bytes=None),
        warning_interval=0,
        clock=TimeStub([1.0, 1.0, 1.0]),
    )

    def fail_mkdir(self: Path, *args: object, **kwargs: object) -> None:
        raise OSError("boom")

    monkeypatch.setattr("mcp_appsage.services.audit_log.Path.mkdir", fail_mkdir)
    caplog.set_level(logging.WARNING)

    for _ in range(3):
        sink.emit(_sample_event())

    assert len(caplog.records) == 3


def test_config_from_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("APPSAGE_AUDIT_DIR", str(tmp_path))
    monkeypatch.setenv("APPSAGE_AUDIT_MAX_BYTES", "2048")
    set_audit_sink(None)

    sink = get_audit_sink()

    assert sink.config == AuditConfig(
        audit_file=tmp_path / "audit.jsonl", max_bytes=2048
    )
    assert get_audit_sink() is sink


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, DEFAULT_MAX_AUDIT_BYTES),
        ("", DEFAULT_MAX_AUDIT_BYTES),
        ("junk", DEFAULT_MAX_AUDIT_BYTES),
        ("0", None),
        ("-5", None),
        ("512", 512),
    ],
)
def test_parse_max_bytes(raw: str | None, expected: int | None) -> None:
    assert _parse_max_bytes(raw) == expected
