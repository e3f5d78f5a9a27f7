"""Structured JSONL run log.

One line per ``repo-prompt`` invocation. Selection queries, content specs and
other free text never reach the file verbatim: only their presence and length
are kept, so a shared log does not leak prompt material.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

_VERBATIM_KEYS = frozenset({"template", "layout", "mode", "output", "counter"})


@dataclass(slots=True, frozen=True)
class RunEvent:
    """Sanitized record of one command invocation."""

    timestamp: str
    command: str
    ok: bool
    error: str | None
    metadata: dict[str, object]
    duration_ms: int = 0


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _shape(key: str, value: object) -> dict[str, object]:
    if isinstance(value, str):
        if key in _VERBATIM_KEYS:
            return {key: value}
        return {f"{key}_present": bool(value), f"{key}_length": len(value)}
    if value is None or isinstance(value, (bool, int, float)):
        return {key: value}
    if isinstance(value, (list, tuple)):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    if isinstance(value, dict):
        return {f"{key}_type": "dict", f"{key}_keys": sorted(map(str, value))}
    return {f"{key}_type": type(value).__name__}


def sanitize_metadata(metadata: dict[str, object]) -> dict[str, object]:
    """Keep numbers and known identifiers; reduce free text and collections to shapes."""
    sanitized: dict[str, object] = {}
    for key in sorted(metadata):
        sanitized.update(_shape(key, metadata[key]))
    return sanitized


class JsonlEventLogger:
    """Append-only run log with a bounded tail reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: RunEvent) -> None:
        line = json.dumps(asdict(event), sort_keys=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def record(
        self,
        command: str,
        ok: bool,
        error: str | None = None,
        duration_ms: int = 0,
        **metadata: object,
    ) -> RunEvent:
        """Sanitize ``metadata``, append the event and return it."""
        event = RunEvent(
            timestamp=utc_timestamp(),
            command=command,
            ok=ok,
            error=error,
            metadata=sanitize_metadata(metadata),
            duration_ms=duration_ms,
        )
        self.append(event)
        return event

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Return the last ``limit`` events, optionally only those at or after ``since``."""
        if limit < 1 or not self._path.exists():
            return []
        tail: deque[dict[str, object]] = deque(maxlen=limit)
        for record in self._records():
            stamp = record.get("timestamp")
            if since is not None and (not isinstance(stamp, str) or stamp < since):
                continue
            tail.append(record)
        return list(tail)

    def _records(self) -> Iterator[dict[str, object]]:
        # Blank or partially written lines are skipped.
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(record, dict):
                    yield record
