"""File selections: whole files or coalesced line ranges under a root."""

from __future__ import annotations

import re
import tomllib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from repo_prompt.errors import PatternError
from repo_prompt.security import resolve_repo_path
from repo_prompt.selection.ranges import (
    LineRange,
    coalesce_ranges,
    extract_selected_lines,
    parse_line_range,
)

LOCK_FILE_PLACEHOLDER = "[lock file omitted]"
BINARY_FILE_PLACEHOLDER = "[binary file omitted]"

LOCK_FILE_NAMES = frozenset(
    name.lower()
    for name in (
        "package-lock.json",
        "npm-shrinkwrap.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "go.sum",
        "Pipfile.lock",
        "poetry.lock",
        "pdm.lock",
        "requirements.lock",
        "Gemfile.lock",
        "Cargo.lock",
        "composer.lock",
        "packages.lock.json",
        "Package.resolved",
        "pubspec.lock",
    )
)

_BINARY_SAMPLE_CHARS = 100
_BINARY_SNIFF_BYTES = 4 * _BINARY_SAMPLE_CHARS
_PATH_WITH_RANGE = re.compile(r"^(.+?)(?:#(\d+,\d+))?$")


def is_lock_file(path: str) -> bool:
    """Return True for well-known dependency lock files (case-insensitive)."""
    return PurePosixPath(path).name.lower() in LOCK_FILE_NAMES


def looks_binary(data: bytes) -> bool:
    """Return True when more than 10% of the first 100 characters are unprintable."""
    sample = data[:_BINARY_SNIFF_BYTES].decode("utf-8", errors="replace")[:_BINARY_SAMPLE_CHARS]
    if not sample:
        return False
    unprintable = sum(
        1
        for char in sample
        if char == "\ufffd" or not (char.isprintable() or char.isspace())
    )
    return unprintable / len(sample) > 0.1


@dataclass(slots=True, frozen=True)
class FileSelection:
    """A selected file; empty ``ranges`` selects the whole file."""

    path: str
    ranges: tuple[LineRange, ...] = ()

    @property
    def whole_file(self) -> bool:
        return not self.ranges

    def contents(self, root: Path) -> str:
        """Return the selected text, eliding lock and binary files."""
        if is_lock_file(self.path):
            return LOCK_FILE_PLACEHOLDER
        data = resolve_repo_path(root, self.path).read_bytes()
        if looks_binary(data):
            return BINARY_FILE_PLACEHOLDER
        text = data.decode("utf-8", errors="replace")
        return extract_selected_lines(self.path, text, coalesce_ranges(self.ranges))

    def read(self, root: Path) -> str:
        """Return the contents preceded by a ``Read File`` marker comment."""
        return f"\n<!-- Read File: {self.path} -->\n{self.contents(root)}"


class FileSelectionSet:
    """Selections keyed by path; adding merges ranges for the same path."""

    def __init__(self, selections: Iterable[FileSelection] = ()) -> None:
        self._items: dict[str, FileSelection] = {}
        self.add_all(selections)

    def add(self, selection: FileSelection) -> None:
        existing = self._items.get(selection.path)
        if existing is None:
            merged = tuple(coalesce_ranges(selection.ranges))
        elif existing.whole_file or selection.whole_file:
            merged = ()
        else:
            merged = tuple(coalesce_ranges(existing.ranges + selection.ranges))
        self._items[selection.path] = FileSelection(path=selection.path, ranges=merged)

    def add_all(self, selections: Iterable[FileSelection]) -> None:
        for selection in selections:
            self.add(selection)

    def get(self, path: str) -> FileSelection | None:
        return self._items.get(path)

    def contains(self, path: str) -> bool:
        return path in self._items

    def values(self) -> list[FileSelection]:
        """Return selections sorted by path."""
        return [self._items[path] for path in sorted(self._items)]

    def paths(self) -> list[str]:
        return sorted(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[FileSelection]:
        return iter(self.values())


def parse_path_with_range(value: str) -> FileSelection:
    """Parse ``path`` or ``path#start,end`` into a selection."""
    match = _PATH_WITH_RANGE.match(value.strip())
    if match is None:
        raise PatternError(f"invalid file path format: {value}", value)
    path, range_text = match.group(1), match.group(2)
    if range_text is None:
        return FileSelection(path=path)
    try:
        line_range = parse_line_range(range_text)
    except ValueError as exc:
        raise PatternError(str(exc), value) from exc
    return FileSelection(path=path, ranges=(line_range,))


def parse_select_toml(text: str) -> FileSelectionSet:
    """Parse ``[[file]] path = "src/a.py#1,20"`` tables into a selection set."""
    try:
        payload = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise PatternError(f"failed to parse TOML: {exc}", text) from exc
    entries = payload.get("file", [])
    if not isinstance(entries, list):
        raise PatternError("select file key 'file' must be an array of tables", text)
    selections = FileSelectionSet()
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
            raise PatternError("each [[file]] entry needs a string 'path'", str(entry))
        selections.add(parse_path_with_range(entry["path"]))
    return selections


def load_select_file(path: Path) -> FileSelectionSet:
    """Read a TOML select file from disk."""
    return parse_select_toml(path.read_text(encoding="utf-8"))
