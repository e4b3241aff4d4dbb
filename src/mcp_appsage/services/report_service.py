"""Cache-aware orchestration around :func:`build_unified_report`."""

from __future__ import annotations

import logging

from ..domain.models import ComparisonResult, Report
from .payload_source import (
    DirectoryPayloadSource,
    PayloadSource,
    validate_content_hash,
)
from .permission_rules import PermissionRuleTable
from .report_audit import record_report_built
from .report_builder import build_unified_report
from .report_cache import JsonFileReportCache, ReportCache
from .report_comparator import compare_reports
from .settings import AppSageConfig

_LOG = logging.getLogger(__name__)

CACHE_KEY_SUFFIX = "_unified"


class ReportNotFoundError(LookupError):
    """Raised when no tool payload exists for a content hash."""


class UnifiedReportService:
    """Serve unified reports, rebuilding them on cache misses."""

    def __init__(
        self,
        payload_source: PayloadSource,
        cache: ReportCache | None = None,
        rules: PermissionRuleTable | None = None,
        ttl: float | None = None,
    ) -> None:
        self.payload_source = payload_source
        self.cache = cache
        self.rules = rules or PermissionRuleTable.from_env()
        self.ttl = ttl

    @classmethod
    def from_config(cls, config: AppSageConfig) -> "UnifiedReportService":
        cache = None
        if config.cache_enabled:
            cache = JsonFileReportCache(
                config.cache_dir, default_ttl=config.cache_ttl_seconds
            )
        return cls(
            payload_source=DirectoryPayloadSource(config.reports_dir),
            cache=cache,
            rules=PermissionRuleTable.from_env(),
            ttl=config.cache_ttl_seconds,
        )

    @staticmethod
    def cache_key(content_hash: str) -> str:
        return f"{content_hash}{CACHE_KEY_SUFFIX}"

    def get_report(self, content_hash: str, refresh: bool = False) -> Report:
        """Return the unified report, from cache unless ``refresh`` is set."""

        validate_content_hash(content_hash)
        key = self.cache_key(content_hash)
        if self.cache is not None and not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                _LOG.debug("Unified report cache hit for %s", content_hash)
                return cached

        payloads = self.payload_source.load(content_hash)
        if not payloads:
            raise ReportNotFoundError(content_hash)

        report = build_unified_report(content_hash, payloads, self.rules)
        _LOG.debug(
            "Rebuilt unified report for %s (score=%s, variant=%s)",
            content_hash,
            report.security_score,
            report.score_variant,
        )
        record_report_built(report)
        if self.cache is not None:
            self.cache.set(key, report, self.ttl)
        return report

    def compare(self, hash_a: str, hash_b: str) -> ComparisonResult:
        """Diff the report for ``hash_b`` against the baseline ``hash_a``."""

        return compare_reports(self.get_report(hash_a), self.get_report(hash_b))

    def invalidate(self, content_hash: str) -> None:
        """Drop the cached report so the next read rebuilds it."""

        validate_content_hash(content_hash)
        if self.cache is not None:
            self.cache.clear(self.cache_key(content_hash))
