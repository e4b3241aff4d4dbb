"""Ordered alias lookups over loosely shaped scanner payloads."""

from __future__ import annotations

from mcp_appsage.services.field_resolution import (
    APP_INFO_FIELDS,
    FINDING_FIELDS,
    resolve_field,
    resolve_mapping,
    resolve_sequence,
    resolve_string_list,
    resolve_text,
)


def test_first_present_alias_wins() -> None:
    source = {"app_name": "", "APP_NAME": "Demo", "file_name": "demo.apk"}

    assert resolve_field(source, APP_INFO_FIELDS["name"]) == "Demo"
    assert resolve_text(source, APP_INFO_FIELDS["name"]) == "Demo"


def test_missing_fields_fall_back_to_default() -> None:
    assert resolve_field({}, ("a", "b"), "fallback") == "fallback"
    assert resolve_text({"title": None}, FINDING_FIELDS["title"], "n/a") == "n/a"


def test_non_mapping_sources_never_raise() -> None:
    for source in (None, "text", 42, ["title"]):
        assert resolve_field(source, ("title",), "d") == "d"
        assert resolve_text(source, ("title",)) == ""
        assert resolve_mapping(source, ("title",)) == {}
        assert resolve_sequence(source, ("title",)) == ()


def test_text_skips_wrong_shaped_values() -> None:
    source = {"severity": ["high"], "level": True, "risk": " warning "}

    assert resolve_text(source, FINDING_FIELDS["severity"]) == "warning"


def test_numbers_render_as_text() -> None:
    assert resolve_text({"line": 42}, ("line",)) == "42"
    assert resolve_text({"size": 1.5}, ("size",)) == "1.5"


def test_nested_mapping_and_sequence_lookup() -> None:
    source = {"summary": "n/a", "certificate_summary": {"high": 1}, "tags": ("a",)}

    assert resolve_mapping(source, ("summary", "certificate_summary")) == {"high": 1}
    assert resolve_sequence(source, ("labels", "tags")) == ("a",)


def test_string_list_drops_non_scalars() -> None:
    source = {"tags": ["cwe", 7, None, {"nested": 1}, False, "owasp"]}

    assert resolve_string_list(source, FINDING_FIELDS["tags"]) == ("cwe", "7", "owasp")
