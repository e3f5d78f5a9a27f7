from __future__ import annotations

import json
import threading

import pytest

from repo_prompt.errors import MetricsClosedError
from repo_prompt.metrics import MetricItem, MetricKey, OutputMetrics, SimpleCounter


class _FailingCounter:
    def count(self, text: str) -> tuple[int, int, int]:
        if text == "boom":
            raise RuntimeError("counter exploded")
        return len(text), 1, 1


def test_concurrent_adds_are_all_counted() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=4)

    def produce() -> None:
        for _ in range(100):
            metrics.add("file", "shared.txt", "abcd")

    producers = [threading.Thread(target=produce) for _ in range(8)]
    for thread in producers:
        thread.start()
    for thread in producers:
        thread.join()
    metrics.wait()

    assert metrics.get("file", "shared.txt") == MetricItem(bytes=3200, tokens=800, lines=800)


def test_add_after_wait_raises() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=1)
    metrics.add("user", "-", "hello")
    metrics.wait()
    assert metrics.closed
    with pytest.raises(MetricsClosedError, match="after wait"):
        metrics.add("user", "-", "again")


def test_reading_before_wait_raises() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=1)
    with pytest.raises(MetricsClosedError, match="only after wait"):
        metrics.items()
    metrics.wait()
    assert metrics.items() == {}


def test_wait_is_idempotent() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=2)
    metrics.add("final", "", "12345678")
    metrics.wait()
    metrics.wait()
    assert metrics.get("final", "") == MetricItem(bytes=8, tokens=2, lines=1)


def test_worker_count_defaults_to_at_least_one() -> None:
    assert OutputMetrics(SimpleCounter(), workers=0).worker_count == 1
    assert OutputMetrics(SimpleCounter(), workers=3).worker_count == 3


def test_sum_and_count_by_type() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=2)
    metrics.add("file", "a.py", "a" * 8)
    metrics.add("file", "b.py", "b" * 4 + "\n")
    metrics.add("template", "files.md", "t" * 12)
    metrics.wait()
    assert metrics.sum_by("file") == MetricItem(bytes=13, tokens=3, lines=3)
    assert metrics.count_by("file") == 2
    assert metrics.count_by("user") == 0
    assert metrics.sum_by("user") == MetricItem()
    assert metrics.total() == MetricItem(bytes=25, tokens=6, lines=4)


def test_to_dict_is_sorted_by_type_and_key() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=1)
    metrics.add("user", "text:hi", "hi")
    metrics.add("file", "z.py", "zzzz")
    metrics.add("file", "a.py", "aaaa")
    metrics.wait()
    snapshot = metrics.to_dict()
    assert list(snapshot) == ["file:a.py", "file:z.py", "user:text:hi"]
    assert snapshot["file:a.py"] == {"bytes": 4, "tokens": 1, "lines": 1}
    assert json.loads(metrics.to_json()) == snapshot
    assert str(MetricKey("file", "a.py")) == "file:a.py"


def test_counter_failure_is_raised_from_wait() -> None:
    metrics = OutputMetrics(_FailingCounter(), workers=1)
    metrics.add("user", "ok", "fine")
    metrics.add("user", "bad", "boom")
    with pytest.raises(RuntimeError, match="counter exploded"):
        metrics.wait()


def test_human_summary_lists_nonzero_groups() -> None:
    metrics = OutputMetrics(SimpleCounter(), workers=1)
    metrics.add("final", "", "x" * 40)
    metrics.add("file", "a.py", "x" * 20)
    metrics.add("user", "-", "x" * 8)
    metrics.wait()
    summary = metrics.human_summary()
    assert summary.splitlines() == [
        "Final output: 10 tokens, 40 bytes, 1 lines",
        "Files: 5 tokens, 20 bytes, 1 lines",
        "  (1 files processed)",
        "User input: 2 tokens, 8 bytes, 1 lines",
    ]
