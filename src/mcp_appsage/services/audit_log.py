"""JSONL audit sink for AppSage report events."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .settings import STATE_DIR

_LOG = logging.getLogger(__name__)

DEFAULT_MAX_AUDIT_BYTES = 1_000_000
AUDIT_DIR_ENV = "APPSAGE_AUDIT_DIR"
AUDIT_MAX_BYTES_ENV = "APPSAGE_AUDIT_MAX_BYTES"
DEFAULT_WARNING_INTERVAL_SECONDS = 60.0


def _parse_max_bytes(raw: str | None) -> int | None:
    """Zero or negative disables rotation; junk falls back to the default."""

    if not raw or not raw.strip():
        return DEFAULT_MAX_AUDIT_BYTES
    try:
        parsed = int(raw)
    except ValueError:
        return DEFAULT_MAX_AUDIT_BYTES
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class AuditConfig:
    """Where audit events go and when the file rotates."""

    audit_file: Path
    max_bytes: int | None

    @classmethod
    def from_env(cls) -> "AuditConfig":
        base_dir = Path(os.getenv(AUDIT_DIR_ENV, str(STATE_DIR)))
        return cls(
            audit_file=base_dir / "audit.jsonl",
            max_bytes=_parse_max_bytes(os.getenv(AUDIT_MAX_BYTES_ENV)),
        )


class JsonlAuditSink:
    """Append-only JSONL writer with single-backup size rotation.

    Filesystem failures are logged as warnings at most once per
    ``warning_interval`` seconds per failure kind and never propagate.
    """

    def __init__(
        self,
        config: AuditConfig,
        warning_interval: float = DEFAULT_WARNING_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.warning_interval = max(warning_interval, 0.0)
        self._clock = clock
        self._last_warning: dict[str, float] = {}

    def _warn(self, kind: str, message: str, *args: object) -> None:
        now = self._clock()
        last = self._last_warning.get(kind)
        if (
            self.warning_interval > 0
            and last is not None
            and now - last < self.warning_interval
        ):
            return
        self._last_warning[kind] = now
        _LOG.warning(message, *args)

    def emit(self, event: dict[str, object]) -> None:
        path = self.config.audit_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._warn(
                "mkdir", "Unable to create audit directory %s: %s", path.parent, exc
            )
            return

        self._rotate_if_needed()
        line = json.dumps(event, ensure_ascii=False, sort_keys=True)
        try:
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            self._warn("write", "Unable to write audit event to %s: %s", path, exc)

    def _rotate_if_needed(self) -> None:
        max_bytes = self.config.max_bytes
        path = self.config.audit_file
        if max_bytes is None or not path.exists():
            return
        try:
            if path.stat().st_size < max_bytes:
                return
            backup = path.with_name(path.name + ".1")
            # replace() overwrites an existing backup on every platform
            path.replace(backup)
        except OSError as exc:
            self._warn("rotate", "Unable to rotate audit log %s: %s", path, exc)


_SINK: JsonlAuditSink | None = None


def get_audit_sink() -> JsonlAuditSink:
    """Return the process-wide sink, configured from the environment on first use."""

    global _SINK
    if _SINK is None:
        _SINK = JsonlAuditSink(AuditConfig.from_env())
    return _SINK


def set_audit_sink(sink: JsonlAuditSink | None) -> None:
    """Install a specific sink; ``None`` re-reads the environment on next use."""

    global _SINK
    _SINK = sink


def append_audit_event(event: dict[str, object]) -> None:
    """Append one serialized event; I/O failures are logged, never raised."""

    get_audit_sink().emit(event)
