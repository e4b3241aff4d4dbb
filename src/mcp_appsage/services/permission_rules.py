"""Versionable rule table describing which permissions count as dangerous."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..domain.errors import InvalidInputError
from .settings import AppSageConfig

_LOG = logging.getLogger(__name__)

RULES_SCHEMA = "permission_rules_v1"
"""Schema registry name used to validate rule files."""

DEFAULT_DESCRIPTOR_PATTERN = r"(dangerous|danger|privileged)"

DEFAULT_NAME_KEYWORDS: tuple[str, ...] = (
    "WRITE",
    "RECORD",
    "CALL",
    "SMS",
    "LOCATION",
    "CAMERA",
    "STORAGE",
    "CONTACTS",
    "RECORD_AUDIO",
    "READ_EXTERNAL_STORAGE",
    "WRITE_EXTERNAL_STORAGE",
    "SYSTEM_ALERT_WINDOW",
    "GET_ACCOUNTS",
    "AUTHENTICATE_ACCOUNTS",
    "REQUEST_INSTALL_PACKAGES",
)


@dataclass(frozen=True)
class PermissionRuleTable:
    """Descriptor regex plus permission-name keywords, both case-insensitive."""

    version: str
    descriptor_pattern: str
    name_keywords: tuple[str, ...]

    def __post_init__(self) -> None:
        try:
            re.compile(self.descriptor_pattern)
        except re.error as exc:
            raise InvalidInputError("Descriptor pattern is not a valid regex.") from exc

    @property
    def descriptor_regex(self) -> re.Pattern[str]:
        return re.compile(self.descriptor_pattern, re.IGNORECASE)

    @property
    def name_regex(self) -> re.Pattern[str] | None:
        if not self.name_keywords:
            return None
        alternation = "|".join(re.escape(keyword) for keyword in self.name_keywords)
        return re.compile(f"({alternation})", re.IGNORECASE)

    def to_mapping(self) -> dict[str, object]:
        return {
            "version": self.version,
            "descriptor_pattern": self.descriptor_pattern,
            "name_keywords": list(self.name_keywords),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PermissionRuleTable":
        """Build a table from a schema-valid mapping."""

        from ..mcp import schema_registry

        try:
            schema_registry.validate(RULES_SCHEMA, data)
        except schema_registry.SchemaValidationError as exc:
            raise InvalidInputError("Permission rule table failed validation.") from exc
        return cls(
            version=str(data["version"]),
            descriptor_pattern=str(data["descriptor_pattern"]),
            name_keywords=tuple(str(keyword) for keyword in data["name_keywords"]),
        )

    @classmethod
    def from_file(cls, path: Path) -> "PermissionRuleTable":
        """Load a rule table from a JSON file."""

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidInputError("Permission rule file is unreadable.") from exc
        if not isinstance(data, Mapping):
            raise InvalidInputError("Permission rule file must hold a JSON object.")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls) -> "PermissionRuleTable":
        """Return the configured rule table, or the built-in defaults."""

        path = AppSageConfig.from_env().permission_rules_path
        if path is None:
            return DEFAULT_PERMISSION_RULES
        table = cls.from_file(path)
        _LOG.debug("Loaded permission rules %s from %s", table.version, path)
        return table


DEFAULT_PERMISSION_RULES = PermissionRuleTable(
    version="builtin-1",
    descriptor_pattern=DEFAULT_DESCRIPTOR_PATTERN,
    name_keywords=DEFAULT_NAME_KEYWORDS,
)
"""Rules applied when no external table is configured."""
