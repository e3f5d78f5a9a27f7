from __future__ import annotations

import json
from pathlib import Path

from repo_prompt.logging import JsonlEventLogger, RunEvent, sanitize_metadata, utc_timestamp


def test_sanitize_keeps_identifiers_and_reduces_free_text() -> None:
    sanitized = sanitize_metadata(
        {
            "template": "review",
            "select": "src|.py",
            "content": ["text:secret"],
            "files": 3,
            "extra": {"b": 1, "a": 2},
            "path": Path("x"),
        }
    )
    assert sanitized == {
        "content_length": 1,
        "content_type": "list",
        "extra_keys": ["a", "b"],
        "extra_type": "dict",
        "files": 3,
        "path_type": type(Path("x")).__name__,
        "select_length": len("src|.py"),
        "select_present": True,
        "template": "review",
    }


def test_append_and_read_round_trip(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "logs" / "events.jsonl")
    first = logger.record("out", ok=True, template="files", select="secret-pattern")
    logger.record("ls", ok=False, error="boom")

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "secret-pattern" not in lines[0]
    assert json.loads(lines[0])["metadata"]["template"] == "files"

    entries = logger.read()
    assert [entry["command"] for entry in entries] == ["out", "ls"]
    assert entries[1]["error"] == "boom"
    assert logger.read(limit=1) == [entries[1]]
    assert logger.read(since=first.timestamp)[0]["command"] == "out"
    assert logger.read(since="9999") == []
    assert logger.read(limit=0) == []


def test_read_skips_blank_and_corrupt_lines(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    logger = JsonlEventLogger(path)
    logger.append(
        RunEvent(timestamp=utc_timestamp(), command="out", ok=True, error=None, metadata={})
    )
    with path.open("a", encoding="utf-8") as handle:
        handle.write("\nnot json\n")
    assert [entry["command"] for entry in logger.read()] == ["out"]


def test_missing_log_reads_empty(tmp_path: Path) -> None:
    assert JsonlEventLogger(tmp_path / "none.jsonl").read() == []


def test_timestamp_is_utc_iso() -> None:
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert "T" in stamp


def test_record_keeps_duration_outside_metadata(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    event = logger.record("out", ok=True, duration_ms=42, files=2)
    assert event.duration_ms == 42
    assert event.metadata == {"files": 2}
    assert logger.read()[0]["duration_ms"] == 42
