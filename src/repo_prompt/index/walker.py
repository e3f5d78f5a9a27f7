"""Deterministic, ignore-aware repository walk."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path

import pathspec

ALWAYS_SKIPPED_DIRS = frozenset({".git"})
GITIGNORE_NAME = ".gitignore"


@dataclass(slots=True, frozen=True)
class IndexItem:
    """One walked entry, relative to the repository root."""

    path: str
    is_dir: bool


@dataclass(slots=True, frozen=True)
class _IgnoreScope:
    """Gitignore rules declared in one directory."""

    base: str
    spec: pathspec.PathSpec

    def ignores(self, relative: str, is_dir: bool) -> bool:
        local = relative[len(self.base) + 1 :] if self.base else relative
        if is_dir:
            local += "/"
        return self.spec.match_file(local)


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches a configured exclude glob."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def load_ignore_scope(directory: Path, base: str) -> _IgnoreScope | None:
    """Read ``directory/.gitignore`` into a scope, if present."""
    ignore_file = directory / GITIGNORE_NAME
    if not ignore_file.is_file():
        return None
    lines = ignore_file.read_text(encoding="utf-8", errors="replace").splitlines()
    return _IgnoreScope(base=base, spec=pathspec.GitIgnoreSpec.from_lines(lines))


def walk_repository(root: Path, exclude_globs: tuple[str, ...] = ()) -> list[IndexItem]:
    """Walk ``root`` depth-first in name order, honoring nested .gitignore files."""
    resolved_root = root.resolve()
    items: list[IndexItem] = []
    root_scope = load_ignore_scope(resolved_root, "")
    scopes: tuple[_IgnoreScope, ...] = (root_scope,) if root_scope is not None else ()
    stack: list[tuple[Path, tuple[_IgnoreScope, ...]]] = [(resolved_root, scopes)]
    while stack:
        current, active_scopes = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered = sorted(entries, key=lambda entry: entry.name)
        except OSError:
            continue
        children: list[tuple[Path, tuple[_IgnoreScope, ...]]] = []
        for entry in ordered:
            full_path = Path(entry.path)
            relative = full_path.relative_to(resolved_root).as_posix()
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_dir and entry.name in ALWAYS_SKIPPED_DIRS:
                continue
            if not is_dir and not entry.is_file(follow_symlinks=False):
                continue
            if any(scope.ignores(relative, is_dir) for scope in active_scopes):
                continue
            if should_exclude(relative + "/" if is_dir else relative, exclude_globs):
                continue
            items.append(IndexItem(path=relative, is_dir=is_dir))
            if is_dir:
                nested = load_ignore_scope(full_path, relative)
                child_scopes = active_scopes + (nested,) if nested is not None else active_scopes
                children.append((full_path, child_scopes))
        # siblings are listed before descending; the final sort restores pre-order
        stack.extend(reversed(children))
    items.sort(key=lambda item: item.path.split("/"))
    return items
