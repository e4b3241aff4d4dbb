"""TTL caches for built unified reports."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from mcp_appsage.domain.models import Report, Tool
from mcp_appsage.services.report_builder import build_unified_report
from mcp_appsage.services.report_cache import InMemoryReportCache, JsonFileReportCache


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def report(mobsf_payload: dict[str, Any]) -> Report:
    return build_unified_report("3f2a9c1e7b", {Tool.MOBSF: mobsf_payload})


def test_memory_cache_hits_until_ttl_expires(report: Report) -> None:
    clock = FakeClock()
    cache = InMemoryReportCache(default_ttl=60, clock=clock)

    cache.set("k", report)
    clock.now += 59
    assert cache.get("k") is report

    clock.now += 1
    assert cache.get("k") is None
    assert cache.stats()["count"] == 0


def test_memory_cache_clear_and_clear_expired(report: Report) -> None:
    clock = FakeClock()
    cache = InMemoryReportCache(default_ttl=60, clock=clock)
    cache.set("short", report, ttl=5)
    cache.set("long", report)
    cache.set("other", report)

    clock.now += 10
    assert cache.clear_expired() == 1
    assert cache.stats()["count"] == 2

    cache.clear("long")
    assert cache.get("long") is None
    cache.clear()
    assert cache.stats()["count"] == 0


def test_file_cache_round_trips_reports(tmp_path: Path, report: Report) -> None:
    cache = JsonFileReportCache(tmp_path / "cache", default_ttl=3600)

    cache.set("3f2a9c1e7b_unified", report)

    assert cache.get("3f2a9c1e7b_unified") == report
    entry = json.loads(
        (tmp_path / "cache" / "3f2a9c1e7b_unified.json").read_text(encoding="utf-8")
    )
    assert entry["key"] == "3f2a9c1e7b_unified"
    assert entry["value"]["securityScore"] == report.security_score
    assert entry["expiresAt"] > entry["cachedAt"]


def test_file_cache_creates_directory_lazily(tmp_path: Path) -> None:
    cache_dir = tmp_path / "cache"
    cache = JsonFileReportCache(cache_dir)

    assert cache.get("missing") is None
    assert cache.stats() == {"count": 0, "totalSize": 0, "totalSizeMB": "0.00"}
    assert cache.clear_expired() == 0
    assert not cache_dir.exists()


def test_file_cache_expiry_removes_entry(tmp_path: Path, report: Report) -> None:
    clock = FakeClock()
    cache = JsonFileReportCache(tmp_path, default_ttl=60, clock=clock)
    cache.set("k", report)

    clock.now += 61

    assert cache.get("k") is None
    assert not (tmp_path / "k.json").exists()


def test_file_cache_clear_expired_counts_removed_entries(
    tmp_path: Path, report: Report
) -> None:
    clock = FakeClock()
    cache = JsonFileReportCache(tmp_path, default_ttl=60, clock=clock)
    cache.set("fresh", report, ttl=600)
    cache.set("stale", report)
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")

    clock.now += 120

    assert cache.clear_expired() == 2
    assert sorted(path.name for path in tmp_path.iterdir()) == ["fresh.json"]


def test_file_cache_treats_malformed_entries_as_misses(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    cache = JsonFileReportCache(tmp_path)
    (tmp_path / "bad.json").write_text("not json", encoding="utf-8")
    (tmp_path / "shape.json").write_text(
        json.dumps({"expiresAt": "2999-01-01T00:00:00+00:00", "value": {}}),
        encoding="utf-8",
    )
    caplog.set_level(logging.WARNING)

    assert cache.get("bad") is None
    assert cache.get("shape") is None
    assert not (tmp_path / "shape.json").exists()
    messages = [record.getMessage() for record in caplog.records]
    assert any("Unable to read cache entry bad.json" in m for m in messages)
    assert any("Discarding malformed cache entry shape.json" in m for m in messages)


def test_file_cache_ignores_non_object_entries(tmp_path: Path) -> None:
    cache = JsonFileReportCache(tmp_path)
    (tmp_path / "listing.json").write_text("[]", encoding="utf-8")
    (tmp_path / "empty.json").write_text("null", encoding="utf-8")

    assert cache.get("listing") is None
    assert cache.get("empty") is None
    assert cache.clear_expired() == 2
    assert list(tmp_path.iterdir()) == []


def test_file_cache_keys_stay_inside_directory(tmp_path: Path, report: Report) -> None:
    cache_dir = tmp_path / "cache"
    cache = JsonFileReportCache(cache_dir)

    cache.set("../escape/key", report)

    (written,) = list(cache_dir.iterdir())
    assert written.name == ".._escape_key.json"
    assert cache.get("../escape/key") == report


def test_file_cache_stats_and_clear(tmp_path: Path, report: Report) -> None:
    cache = JsonFileReportCache(tmp_path)
    cache.set("one", report)
    cache.set("two", report)

    stats = cache.stats()
    assert stats["count"] == 2
    assert stats["totalSize"] > 0

    cache.clear("one")
    assert cache.stats()["count"] == 1
    cache.clear()
    assert cache.stats()["count"] == 0
