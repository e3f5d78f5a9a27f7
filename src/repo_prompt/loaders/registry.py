"""Scheme registry and dispatch for content source specs."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

import httpx

from repo_prompt.errors import ContentSourceError
from repo_prompt.loaders.sources import (
    ClipboardLoader,
    ContentLoader,
    FileLoader,
    HttpLoader,
    ShellLoader,
    StdinLoader,
    TextLoader,
)

LoaderFactory = Callable[[str, str], ContentLoader]


@dataclass(slots=True)
class LoaderRegistry:
    """Content loaders keyed by scheme, preserving registration order."""

    _factories: dict[str, LoaderFactory] = field(default_factory=dict)
    stdin: TextIO | None = None

    def register(self, scheme: str, factory: LoaderFactory) -> None:
        """Register ``factory(scheme, argument)`` for ``scheme``."""
        self._factories[scheme] = factory

    def get(self, scheme: str) -> LoaderFactory | None:
        return self._factories.get(scheme)

    def names(self) -> tuple[str, ...]:
        return tuple(self._factories.keys())

    def resolve(self, spec: str) -> ContentLoader:
        """Pick a loader for ``spec``: stdin, ``scheme:rest``, bare alias, then file path."""
        if spec == "-":
            return StdinLoader(self.stdin)
        scheme, separator, rest = spec.partition(":")
        if separator:
            factory = self.get(scheme)
            if factory is not None:
                return factory(scheme, rest)
        factory = self.get(spec)
        if factory is not None:
            return factory(spec, "")
        if Path(spec).expanduser().is_file():
            return FileLoader(spec)
        raise ContentSourceError(f"unrecognised content source: '{spec}'", spec)

    def load(self, spec: str) -> str:
        return self.resolve(spec).load()

    def load_all(self, specs: Iterable[str]) -> str:
        """Load every spec in order and join the results with a blank line."""
        return "\n\n".join(self.load(spec) for spec in specs)


def default_registry(
    http_client: httpx.Client | None = None,
    shell_cwd: Path | None = None,
    stdin: TextIO | None = None,
) -> LoaderRegistry:
    """Build the registry with the built-in schemes."""
    registry = LoaderRegistry(stdin=stdin)
    for scheme in ("text", "literal"):
        registry.register(scheme, lambda _scheme, argument: TextLoader(argument))
    registry.register("file", lambda _scheme, argument: FileLoader(argument))
    for scheme in ("http", "https"):
        registry.register(
            scheme, lambda name, argument: HttpLoader(f"{name}:{argument}", client=http_client)
        )
    for scheme in ("shell", "sh"):
        registry.register(scheme, lambda _scheme, argument: ShellLoader(argument, cwd=shell_cwd))
    for scheme in ("clipboard", "paste"):
        registry.register(scheme, lambda _scheme, _argument: ClipboardLoader())
    return registry
