"""Ordered-fallback field resolution for loosely shaped scanner payloads.

Scanner JSON varies between releases and deployments, so every semantic field
is looked up through an ordered alias list. The first alias that is present
with a usable value wins. None of the helpers here raise: a non-mapping source,
a missing key, or a value of the wrong shape all collapse to the default.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

APP_INFO_FIELDS: dict[str, tuple[str, ...]] = {
    "name": ("name", "app_name", "APP_NAME", "file_name", "FILE_NAME"),
    "package": ("package", "package_name", "PACKAGE_NAME"),
    "version": ("version", "version_name", "VERSION_NAME"),
    "size": ("size", "file_size", "apk_size"),
    "content_hash": ("hash", "md5", "MD5"),
}
"""Alias table for :class:`~mcp_appsage.domain.models.AppInfo` fields."""

FINDING_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("title", "name", "check", "issue", "issue_title", "rule"),
    "severity": ("severity", "level", "risk", "stat"),
    "description": (
        "description",
        "desc",
        "details",
        "message",
        "snippet",
        "detail",
        "info",
    ),
    "location": ("path", "file", "location", "component"),
    "remediation": (
        "remediation",
        "fix",
        "recommendation",
        "fix_recommendation",
        "remediation_text",
    ),
    "cwe": ("cwe", "CWE"),
    "owasp": ("owasp-mobile", "owasp_mobile", "owasp", "OWASP"),
    "tags": ("tags", "labels"),
}
"""Alias table for finding fields shared by every extractor."""

PERMISSION_FIELDS: dict[str, tuple[str, ...]] = {
    "descriptor": ("status", "level", "risk", "description"),
}
"""Alias table for the descriptor attached to a permission entry."""

_SCALAR_TYPES = (str, int, float)


def resolve_field(source: Any, aliases: Sequence[str], default: Any = None) -> Any:
    """Return the first present, non-empty value among ``aliases``."""

    if not isinstance(source, Mapping):
        return default
    for alias in aliases:
        value = source.get(alias)
        if value is None or value == "":
            continue
        return value
    return default


def resolve_text(source: Any, aliases: Sequence[str], default: str = "") -> str:
    """Resolve a scalar field and render it as text."""

    if not isinstance(source, Mapping):
        return default
    for alias in aliases:
        value = source.get(alias)
        if isinstance(value, bool) or not isinstance(value, _SCALAR_TYPES):
            continue
        text = str(value).strip()
        if text:
            return text
    return default


def resolve_mapping(source: Any, aliases: Sequence[str]) -> Mapping[str, Any]:
    """Resolve a nested mapping, or an empty one when absent or mis-shaped."""

    if not isinstance(source, Mapping):
        return {}
    for alias in aliases:
        value = source.get(alias)
        if isinstance(value, Mapping):
            return value
    return {}


def resolve_sequence(source: Any, aliases: Sequence[str]) -> tuple[Any, ...]:
    """Resolve a list-shaped field, or an empty tuple when absent or mis-shaped."""

    if not isinstance(source, Mapping):
        return ()
    for alias in aliases:
        value = source.get(alias)
        if isinstance(value, (list, tuple)):
            return tuple(value)
    return ()


def resolve_string_list(source: Any, aliases: Sequence[str]) -> tuple[str, ...]:
    """Resolve a list of scalar values as strings, skipping anything else."""

    return tuple(
        str(item)
        for item in resolve_sequence(source, aliases)
        if isinstance(item, _SCALAR_TYPES) and not isinstance(item, bool)
    )
