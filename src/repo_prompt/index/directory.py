"""Flat, ignore-aware listing of a repository used by selection queries."""

from __future__ import annotations

import posixpath
from functools import cached_property
from pathlib import Path

from repo_prompt.index.tree import render_tree
from repo_prompt.index.walker import IndexItem, walk_repository
from repo_prompt.selection import (
    FileSelection,
    FileSelectionSet,
    PathSet,
    collect_selections,
    evaluate,
    parse_select_lines,
)


class DirectoryIndex:
    """Walks the repository once and answers selection queries over it."""

    def __init__(self, root: Path, exclude_globs: tuple[str, ...] = ()) -> None:
        self.root = root.resolve()
        self._exclude_globs = exclude_globs

    @cached_property
    def _items(self) -> tuple[IndexItem, ...]:
        return tuple(walk_repository(self.root, self._exclude_globs))

    def items(self) -> list[IndexItem]:
        """Return every walked file and directory in pre-order."""
        return list(self._items)

    def select_all_files(self) -> list[str]:
        """Return the relative paths of all files."""
        return [item.path for item in self._items if not item.is_dir]

    def select_files(self, select_text: str) -> list[FileSelection]:
        """Run one query per line and return the merged selections sorted by path."""
        files = self.select_all_files()
        selections = FileSelectionSet()
        for matcher in parse_select_lines(select_text):
            selections.add_all(collect_selections(matcher, files))
        return selections.values()

    def filter(self, pattern: str) -> list[IndexItem]:
        """Return matched files plus every ancestor directory, in walk order."""
        if not pattern.strip():
            return self.items()
        files = self.select_all_files()
        matched: PathSet[str] = PathSet()
        for matcher in parse_select_lines(pattern):
            matched.add(*evaluate(matcher, files))

        keep: PathSet[str] = PathSet()
        for path in matched:
            keep.add(path)
            parent = posixpath.dirname(path)
            while parent:
                keep.add(parent)
                parent = posixpath.dirname(parent)
        return [item for item in self._items if item.path in keep]

    def tree(self, pattern: str = "") -> str:
        """Render the (optionally filtered) tree headed by the absolute root path."""
        return render_tree(str(self.root), self.filter(pattern))
