"""Template sources searched by the resolver."""

from __future__ import annotations

import posixpath
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Protocol

from repo_prompt.security import PathBlockedError, resolve_repo_path


class Layer(Protocol):
    """Read-only source of template files addressed by slash paths."""

    name: str

    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> str: ...


def normalize_layer_path(path: str) -> str | None:
    """Return a clean relative path, or None when it would leave the layer."""
    cleaned = posixpath.normpath(path.replace("\\", "/").lstrip("/"))
    if cleaned in ("", ".") or cleaned == ".." or cleaned.startswith("../"):
        return None
    return cleaned


class DirectoryLayer:
    """Templates stored below a directory on disk."""

    def __init__(self, root: Path, name: str | None = None) -> None:
        self.root = root.expanduser().resolve()
        self.name = name or str(self.root)

    def _locate(self, path: str) -> Path | None:
        cleaned = normalize_layer_path(path)
        if cleaned is None:
            return None
        try:
            return resolve_repo_path(self.root, cleaned)
        except PathBlockedError:
            return None

    def exists(self, path: str) -> bool:
        located = self._locate(path)
        return located is not None and located.is_file()

    def read(self, path: str) -> str:
        located = self._locate(path)
        if located is None:
            raise FileNotFoundError(path)
        return located.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"DirectoryLayer({self.name!r})"


class PackageLayer:
    """Templates shipped inside the ``repo_prompt`` package."""

    def __init__(self, package: str = "repo_prompt", folder: str = "templates") -> None:
        self._root = resources.files(package).joinpath(folder)
        self.name = f"<{package}:{folder}>"

    def _locate(self, path: str) -> Traversable | None:
        cleaned = normalize_layer_path(path)
        if cleaned is None:
            return None
        node = self._root
        for part in cleaned.split("/"):
            node = node.joinpath(part)
        return node

    def exists(self, path: str) -> bool:
        located = self._locate(path)
        return located is not None and located.is_file()

    def read(self, path: str) -> str:
        located = self._locate(path)
        if located is None or not located.is_file():
            raise FileNotFoundError(path)
        return located.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"PackageLayer({self.name!r})"


class MemoryLayer:
    """Templates held in a dict, keyed by slash path."""

    def __init__(self, files: dict[str, str], name: str = "memory") -> None:
        self._files = {normalize_layer_path(key) or key: value for key, value in files.items()}
        self.name = name

    def exists(self, path: str) -> bool:
        cleaned = normalize_layer_path(path)
        return cleaned is not None and cleaned in self._files

    def read(self, path: str) -> str:
        cleaned = normalize_layer_path(path)
        if cleaned is None or cleaned not in self._files:
            raise FileNotFoundError(path)
        return self._files[cleaned]

    def __repr__(self) -> str:
        return f"MemoryLayer({self.name!r})"
