"""Reason codes carried by PUBLIC error responses."""

from __future__ import annotations

INVALID_INPUT = "invalid_input"
"""Input failed schema validation or carried an out-of-range value."""

REPORT_NOT_FOUND = "report_not_found"
"""No tool payload exists for the requested content hash."""

RESPONSE_VALIDATION_FAILED = "response_validation_failed"
"""The service produced output that violated the public response schema."""

CONFIGURATION_INVALID = "configuration_invalid"
"""The server could not build its report service from the environment."""
