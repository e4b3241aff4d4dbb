"""Read access to the raw per-tool payloads stored for a content hash."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Protocol

from ..domain.errors import InvalidInputError
from ..domain.models import Tool

_LOG = logging.getLogger(__name__)

CONTENT_HASH_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
"""Accepted shape for content-hash identifiers."""

PAYLOAD_FILE_SUFFIXES: dict[Tool, str] = {
    Tool.MOBSF: "",
    Tool.SONARQUBE: "_sonar",
}
"""Filename suffix per tool: ``<hash><suffix>.json``."""


def validate_content_hash(content_hash: object) -> str:
    """Return ``content_hash`` or raise :class:`InvalidInputError`."""

    if not isinstance(content_hash, str) or not CONTENT_HASH_PATTERN.fullmatch(
        content_hash
    ):
        raise InvalidInputError("Content hash is malformed.")
    return content_hash


class PayloadSource(Protocol):
    """Source of raw tool payloads keyed by content hash."""

    def load(self, content_hash: str) -> dict[Tool, Any]: ...


class InMemoryPayloadSource:
    """Payloads held in memory; useful for tests and embedding."""

    def __init__(
        self, payloads: Mapping[str, Mapping[Tool, Any]] | None = None
    ) -> None:
        self._payloads: dict[str, dict[Tool, Any]] = {
            key: dict(value) for key, value in (payloads or {}).items()
        }

    def put(self, content_hash: str, tool: Tool, payload: Any) -> None:
        validate_content_hash(content_hash)
        self._payloads.setdefault(content_hash, {})[tool] = payload

    def load(self, content_hash: str) -> dict[Tool, Any]:
        validate_content_hash(content_hash)
        return dict(self._payloads.get(content_hash, {}))


class DirectoryPayloadSource:
    """Payloads stored as JSON files under one reports directory."""

    def __init__(self, reports_dir: Path) -> None:
        self.reports_dir = reports_dir

    def path_for(self, content_hash: str, tool: Tool) -> Path:
        suffix = PAYLOAD_FILE_SUFFIXES[tool]
        return self.reports_dir / f"{content_hash}{suffix}.json"

    def load(self, content_hash: str) -> dict[Tool, Any]:
        validate_content_hash(content_hash)
        payloads: dict[Tool, Any] = {}
        for tool in PAYLOAD_FILE_SUFFIXES:
            path = self.path_for(content_hash, tool)
            if not path.exists():
                continue
            try:
                payloads[tool] = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                _LOG.warning(
                    "Ignoring unreadable %s payload %s: %s", tool.value, path.name, exc
                )
        return payloads
