"""Concurrent metrics collection keyed by content origin."""

from __future__ import annotations

import json
import os
import queue
import threading
from dataclasses import dataclass

from repo_prompt.errors import MetricsClosedError
from repo_prompt.metrics.counter import Counter

METRIC_TYPES = ("file", "template", "user", "final")


@dataclass(slots=True, frozen=True, order=True)
class MetricKey:
    """Origin of a measured fragment, rendered as ``type:key``."""

    type: str
    key: str

    def __str__(self) -> str:
        return f"{self.type}:{self.key}"


@dataclass(slots=True, frozen=True)
class MetricItem:
    """Additive byte/token/line totals."""

    bytes: int = 0
    tokens: int = 0
    lines: int = 0

    def __add__(self, other: MetricItem) -> MetricItem:
        return MetricItem(
            bytes=self.bytes + other.bytes,
            tokens=self.tokens + other.tokens,
            lines=self.lines + other.lines,
        )

    def to_dict(self) -> dict[str, int]:
        return {"bytes": self.bytes, "tokens": self.tokens, "lines": self.lines}


@dataclass(slots=True, frozen=True)
class _Job:
    key: MetricKey
    content: str


class OutputMetrics:
    """Counts fragments on a fixed worker pool.

    ``add`` enqueues work and may block while the bounded queue is full.
    ``wait`` is a one-shot barrier: it closes the queue, joins the workers and
    makes the totals readable. Adding after ``wait`` raises MetricsClosedError.
    """

    def __init__(self, counter: Counter, workers: int | None = None) -> None:
        size = workers if workers is not None else (os.cpu_count() or 1)
        size = max(1, size)
        self._counter = counter
        self._jobs: queue.Queue[_Job | None] = queue.Queue(maxsize=size * 2)
        self._items: dict[MetricKey, MetricItem] = {}
        self._items_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False
        self._drained = threading.Event()
        self._failures: list[Exception] = []
        self._threads = [
            threading.Thread(target=self._work, name=f"metrics-worker-{index}", daemon=True)
            for index in range(size)
        ]
        for thread in self._threads:
            thread.start()

    @property
    def worker_count(self) -> int:
        return len(self._threads)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, metric_type: str, key: str, content: str) -> None:
        """Queue ``content`` to be counted under ``metric_type:key``."""
        with self._state_lock:
            if self._closed:
                raise MetricsClosedError(f"cannot add metric {metric_type}:{key} after wait()")
            self._jobs.put(_Job(key=MetricKey(metric_type, key), content=content))

    def wait(self) -> None:
        """Close the queue and block until every queued job is counted."""
        with self._state_lock:
            if not self._closed:
                self._closed = True
                for _ in self._threads:
                    self._jobs.put(None)
        for thread in self._threads:
            thread.join()
        self._drained.set()
        if self._failures:
            raise self._failures[0]

    def items(self) -> dict[MetricKey, MetricItem]:
        """Return a snapshot of all totals; only valid after ``wait``."""
        self._require_drained()
        with self._items_lock:
            return dict(self._items)

    def get(self, metric_type: str, key: str) -> MetricItem | None:
        return self.items().get(MetricKey(metric_type, key))

    def sum_by(self, metric_type: str) -> MetricItem:
        """Fold every item of one type."""
        total = MetricItem()
        for key, item in self.items().items():
            if key.type == metric_type:
                total = total + item
        return total

    def total(self) -> MetricItem:
        """Fold every item regardless of type."""
        total = MetricItem()
        for item in self.items().values():
            total = total + item
        return total

    def count_by(self, metric_type: str) -> int:
        return sum(1 for key in self.items() if key.type == metric_type)

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Return ``{"type:key": {"bytes", "tokens", "lines"}}`` sorted by key."""
        snapshot = self.items()
        return {str(key): snapshot[key].to_dict() for key in sorted(snapshot)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    def human_summary(self) -> str:
        """Return a short multi-line summary of final, file, template and user totals."""
        lines: list[str] = []
        final = self.get("final", "")
        if final is not None:
            lines.append(
                f"Final output: {final.tokens} tokens, {final.bytes} bytes, {final.lines} lines"
            )
        files = self.sum_by("file")
        if files.tokens > 0:
            lines.append(f"Files: {files.tokens} tokens, {files.bytes} bytes, {files.lines} lines")
            lines.append(f"  ({self.count_by('file')} files processed)")
        templates = self.sum_by("template")
        if templates.tokens > 0:
            lines.append(
                f"Templates: {templates.tokens} tokens, {templates.bytes} bytes, "
                f"{templates.lines} lines"
            )
        user = self.sum_by("user")
        if user.tokens > 0:
            lines.append(f"User input: {user.tokens} tokens, {user.bytes} bytes, {user.lines} lines")
        return "".join(f"{line}\n" for line in lines)

    def _require_drained(self) -> None:
        if not self._drained.is_set():
            raise MetricsClosedError("metrics are readable only after wait() has returned")

    def _work(self) -> None:
        while True:
            job = self._jobs.get()
            if job is None:
                return
            try:
                item = MetricItem(*self._counter.count(job.content))
            except Exception as exc:
                with self._items_lock:
                    self._failures.append(exc)
                continue
            with self._items_lock:
                self._items[job.key] = self._items.get(job.key, MetricItem()) + item
