"""Ensure each JSON schema is exercised by its published example."""

from mcp_appsage.mcp import schema_registry

SCHEMA_EXAMPLE_MAP = {
    "unified_report_request_v1": "unified_report_request_example",
    "compare_request_v1": "compare_request_example",
    "analytics_request_v1": "analytics_request_example",
    "unified_report_v1": "unified_report_example",
    "comparison_result_v1": "comparison_result_example",
    "analytics_dashboard_v1": "analytics_dashboard_example",
    "permission_rules_v1": "permission_rules_example",
}


def test_all_examples_validate_against_their_schemas() -> None:
    """Every example file should match its declared schema contract."""

    for schema_name, example_name in SCHEMA_EXAMPLE_MAP.items():
        example = schema_registry.get_example(example_name)
        schema_registry.validate(schema_name, example)


def test_every_registered_schema_has_an_example() -> None:
    assert set(SCHEMA_EXAMPLE_MAP) == set(schema_registry.SCHEMA_FILES)
    assert set(SCHEMA_EXAMPLE_MAP.values()) == set(schema_registry.EXAMPLE_FILES)
