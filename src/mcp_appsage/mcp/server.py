"""Minimal FastMCP server entrypoint for AppSage."""

from __future__ import annotations

import logging
import sys
from typing import Any, Mapping

from ..domain.errors import InvalidInputError
from ..services.analytics import summarize_reports
from ..services.report_service import ReportNotFoundError, UnifiedReportService
from ..services.settings import AppSageConfig
from . import reason_codes, schema_registry
from .schema_registry import SchemaValidationError

_LOG = logging.getLogger(__name__)

UNIFIED_REQUEST_SCHEMA = "unified_report_request_v1"
COMPARE_REQUEST_SCHEMA = "compare_request_v1"
ANALYTICS_REQUEST_SCHEMA = "analytics_request_v1"
UNIFIED_RESPONSE_SCHEMA = "unified_report_v1"
COMPARE_RESPONSE_SCHEMA = "comparison_result_v1"
ANALYTICS_RESPONSE_SCHEMA = "analytics_dashboard_v1"

_SERVICE: UnifiedReportService | None = None


def get_report_service() -> UnifiedReportService:
    """Return the shared service, built from the environment on first use."""

    global _SERVICE
    if _SERVICE is None:
        _SERVICE = UnifiedReportService.from_config(AppSageConfig.from_env())
    return _SERVICE


def set_report_service(service: UnifiedReportService | None) -> None:
    """Install a specific service; ``None`` rebuilds from the environment."""

    global _SERVICE
    _SERVICE = service


def _configured_service() -> UnifiedReportService | None:
    try:
        return get_report_service()
    except InvalidInputError as exc:
        _LOG.warning("Report service configuration rejected: %s", exc)
        return None


def _misconfigured() -> dict[str, str]:
    return _error(
        reason_codes.CONFIGURATION_INVALID, "Server configuration is not valid."
    )


def _error(reason: str, detail: str) -> dict[str, str]:
    """Return an error payload with a stable reason code."""

    return {"status": "error", "reason": reason, "detail": detail}


def _validated_response(
    schema_name: str, response: Mapping[str, Any]
) -> Mapping[str, Any]:
    try:
        schema_registry.validate(schema_name, response)
    except SchemaValidationError as exc:
        _LOG.warning("Response violated %s: %s", schema_name, exc.message)
        return _error(
            reason_codes.RESPONSE_VALIDATION_FAILED,
            "Service output did not meet the public contract.",
        )
    return response


class HealthResource:
    """Liveness resource."""

    __slots__ = ()

    def get_status(self) -> Mapping[str, str]:
        return {"status": "ok", "detail": "AppSage MCP FastMCP server ready"}

    def __call__(self) -> Mapping[str, str]:
        return self.get_status()


class UnifiedReportResource:
    """PUBLIC resource returning the unified report for one content hash."""

    __slots__ = ()

    def __call__(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.fetch(request)

    def get_status(self) -> Mapping[str, str]:
        return {"status": "ok", "detail": "PUBLIC unified report resource ready"}

    def fetch(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            schema_registry.validate(UNIFIED_REQUEST_SCHEMA, request)
        except SchemaValidationError:
            return _error(reason_codes.INVALID_INPUT, "Request failed validation.")

        service = _configured_service()
        if service is None:
            return _misconfigured()
        try:
            report = service.get_report(
                request["hash"], refresh=bool(request.get("refresh", False))
            )
        except InvalidInputError:
            return _error(reason_codes.INVALID_INPUT, "Content hash is not valid.")
        except ReportNotFoundError:
            return _error(
                reason_codes.REPORT_NOT_FOUND,
                "No analysis results exist for the requested hash.",
            )

        return _validated_response(UNIFIED_RESPONSE_SCHEMA, report.to_mapping())


class CompareReportsResource:
    """PUBLIC resource diffing the report for ``hash2`` against ``hash1``."""

    __slots__ = ()

    def __call__(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.compare(request)

    def get_status(self) -> Mapping[str, str]:
        return {"status": "ok", "detail": "PUBLIC report comparison resource ready"}

    def compare(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            schema_registry.validate(COMPARE_REQUEST_SCHEMA, request)
        except SchemaValidationError:
            return _error(reason_codes.INVALID_INPUT, "Request failed validation.")

        service = _configured_service()
        if service is None:
            return _misconfigured()
        try:
            result = service.compare(request["hash1"], request["hash2"])
        except InvalidInputError:
            return _error(reason_codes.INVALID_INPUT, "Content hash is not valid.")
        except ReportNotFoundError:
            return _error(
                reason_codes.REPORT_NOT_FOUND,
                "Both reports must exist before they can be compared.",
            )

        return _validated_response(COMPARE_RESPONSE_SCHEMA, result.to_mapping())


class AnalyticsResource:
    """PUBLIC resource aggregating dashboard statistics over many hashes.

    Hashes without any stored analysis results are skipped rather than
    failing the whole dashboard.
    """

    __slots__ = ()

    def __call__(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        return self.summarize(request)

    def get_status(self) -> Mapping[str, str]:
        return {"status": "ok", "detail": "PUBLIC analytics resource ready"}

    def summarize(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            schema_registry.validate(ANALYTICS_REQUEST_SCHEMA, request)
        except SchemaValidationError:
            return _error(reason_codes.INVALID_INPUT, "Request failed validation.")

        service = _configured_service()
        if service is None:
            return _misconfigured()
        reports = []
        for content_hash in dict.fromkeys(request["hashes"]):
            try:
                reports.append(service.get_report(content_hash))
            except ReportNotFoundError:
                _LOG.debug("Skipping %s in analytics: no results", content_hash)
            except InvalidInputError:
                return _error(
                    reason_codes.INVALID_INPUT, "Content hash is not valid."
                )

        return _validated_response(
            ANALYTICS_RESPONSE_SCHEMA, summarize_reports(reports)
        )


RESOURCE_REGISTRY = {
    "health": HealthResource(),
    "public://reports/unified": UnifiedReportResource(),
    "public://reports/compare": CompareReportsResource(),
    "public://reports/analytics": AnalyticsResource(),
}
"""Resource registry for FastMCP tooling."""


def create_server() -> Mapping[str, Mapping[str, Any]]:
    """Return the configured resources for this FastMCP server."""

    return {"resources": RESOURCE_REGISTRY}


def main() -> None:
    """Log available resources without launching networking."""

    sys.stdout.write("FastMCP AppSage server initialized with resources:\n\n")
    for name, resource in RESOURCE_REGISTRY.items():
        sys.stdout.write(f"- {name}: {resource.get_status()}\n")


if __name__ == "__main__":
    main()
