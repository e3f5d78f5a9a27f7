from __future__ import annotations

from repo_prompt.metrics import OutputMetrics, SimpleCounter, render_token_breakdown
from repo_prompt.metrics.summary import trim_prefix


def _metrics(entries: list[tuple[str, str, int]]) -> OutputMetrics:
    metrics = OutputMetrics(SimpleCounter(), workers=2)
    for metric_type, key, size in entries:
        metrics.add(metric_type, key, "x" * size)
    metrics.wait()
    return metrics


def test_empty_metrics_render_placeholder() -> None:
    assert render_token_breakdown(_metrics([])) == "No tokens recorded\n"


def test_breakdown_sorts_ascending_and_collapses_small_entries() -> None:
    metrics = _metrics(
        [
            ("file", "src/a.py", 400),
            ("file", "src/b.py", 200),
            ("file", "x.txt", 4),
        ]
    )
    output = render_token_breakdown(metrics, bar_width=10, width=80)
    lines = output.splitlines()

    assert lines[0].endswith("file:**")
    assert lines[1].endswith("file:src/b.py")
    assert lines[2].endswith("file:src/a.py")
    assert lines[2].startswith("█" * 10)
    assert lines[3].startswith("─" * 10)
    assert lines[3].endswith("TOTAL")
    assert "100.0%" in lines[3]
    assert lines[4] == ""
    assert lines[5] == "Summary: 3 files, 151 tokens"


def test_breakdown_lists_non_file_metrics() -> None:
    metrics = _metrics([("template", "files.md", 40), ("user", "text:hi", 40)])
    output = render_token_breakdown(metrics, bar_width=4, width=60)
    assert "template:files.md" in output
    assert "user:text:hi" in output
    assert output.endswith("Summary: 0 files, 20 tokens\n")


def test_trim_prefix_keeps_tail() -> None:
    assert trim_prefix("short", 10) == "short"
    assert trim_prefix("src/very/long/path.py", 8) == "…path.py"
