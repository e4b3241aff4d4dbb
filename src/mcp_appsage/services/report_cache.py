"""TTL caches for built unified reports.

The core treats every miss, expired entry or unreadable entry as "rebuild
from the raw payloads". Rebuilding is deterministic, so concurrent writers of
one key store identical content and last-writer-wins is safe.
"""

from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from ..domain.models import Report

_LOG = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"[^A-Za-z0-9_.-]")


class ReportCache(Protocol):
    """Cache contract consumed by :class:`UnifiedReportService`."""

    def get(self, key: str) -> Report | None: ...

    def set(self, key: str, report: Report, ttl: float | None = None) -> None: ...

    def clear(self, key: str | None = None) -> None: ...

    def clear_expired(self) -> int: ...

    def stats(self) -> dict[str, object]: ...


class InMemoryReportCache:
    """Process-local cache used by tests and single-process deployments."""

    def __init__(
        self,
        default_ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Report]] = {}

    def get(self, key: str) -> Report | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, report = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return report

    def set(self, key: str, report: Report, ttl: float | None = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        self._entries[key] = (self._clock() + lifetime, report)

    def clear(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def clear_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires, _) in self._entries.items() if expires <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> dict[str, object]:
        return {"count": len(self._entries), "totalSize": 0, "totalSizeMB": "0.00"}


class JsonFileReportCache:
    """One JSON document per key under ``cache_dir``.

    The directory is created on first write, never at import time.
    """

    def __init__(
        self,
        cache_dir: Path,
        default_ttl: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = cache_dir
        self.default_ttl = default_ttl
        self._clock = clock

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{_KEY_PATTERN.sub('_', key)}.json"

    def _iso(self, timestamp: float) -> str:
        return datetime.fromtimestamp(timestamp, timezone.utc).isoformat()

    def _load(self, path: Path) -> dict[str, Any] | None:
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _LOG.warning("Unable to read cache entry %s: %s", path.name, exc)
            return None
        if not isinstance(entry, dict):
            _LOG.warning("Cache entry %s is not a JSON object", path.name)
            return None
        return entry

    def _expired(self, entry: dict[str, Any]) -> bool:
        expires_at = entry.get("expiresAt")
        if not isinstance(expires_at, str):
            return True
        try:
            deadline = datetime.fromisoformat(expires_at).timestamp()
        except ValueError:
            return True
        return deadline <= self._clock()

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            _LOG.warning("Unable to remove cache entry %s: %s", path.name, exc)

    def get(self, key: str) -> Report | None:
        path = self._path(key)
        if not path.exists():
            return None
        entry = self._load(path)
        if entry is None:
            return None
        if self._expired(entry):
            self._remove(path)
            return None
        try:
            return Report.from_mapping(entry["value"])
        except (KeyError, TypeError, ValueError) as exc:
            _LOG.warning("Discarding malformed cache entry %s: %s", path.name, exc)
            self._remove(path)
            return None

    def set(self, key: str, report: Report, ttl: float | None = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        now = self._clock()
        entry = {
            "key": key,
            "value": report.to_mapping(),
            "expiresAt": self._iso(now + lifetime),
            "cachedAt": self._iso(now),
        }
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(
                json.dumps(entry, ensure_ascii=False, indent=2), encoding="utf-8"
            )
        except OSError as exc:
            _LOG.warning("Unable to write cache entry for %s: %s", key, exc)

    def _entries(self) -> list[Path]:
        if not self.cache_dir.exists():
            return []
        return sorted(self.cache_dir.glob("*.json"))

    def clear(self, key: str | None = None) -> None:
        if key is not None:
            self._remove(self._path(key))
            return
        for path in self._entries():
            self._remove(path)

    def clear_expired(self) -> int:
        cleared = 0
        for path in self._entries():
            entry = self._load(path)
            if entry is None or self._expired(entry):
                self._remove(path)
                cleared += 1
        return cleared

    def stats(self) -> dict[str, object]:
        total_size = 0
        count = 0
        for path in self._entries():
            try:
                total_size += path.stat().st_size
            except OSError:
                continue
            count += 1
        return {
            "count": count,
            "totalSize": total_size,
            "totalSizeMB": f"{total_size / 1024 / 1024:.2f}",
        }
