"""Layered template addressing.

Layers are ordered highest priority first. Address forms:

* ``<name>``  the last (built-in) layer only
* ``@name``   the first (repository) layer only
* ``./name``, ``../name``  relative to the current template, in its own layer
* ``name``    every layer in order; first hit wins
"""

from __future__ import annotations

import posixpath
from collections.abc import Sequence
from enum import Enum

from repo_prompt.errors import ResolutionError, TemplateNotFoundError
from repo_prompt.render.layers import Layer, normalize_layer_path
from repo_prompt.render.template import Template, parse_template


class AddressKind(Enum):
    SYSTEM = "system"
    REPO_ROOT = "repo_root"
    RELATIVE = "relative"
    BARE = "bare"


def classify_address(address: str) -> tuple[AddressKind, str]:
    """Split an address into its kind and the name to look up."""
    text = address.strip()
    if text.startswith("<") and text.endswith(">") and len(text) > 2:
        return AddressKind.SYSTEM, text[1:-1].strip()
    if text.startswith("@"):
        return AddressKind.REPO_ROOT, text[1:].strip()
    if text in (".", "..") or text.startswith("./") or text.startswith("../"):
        return AddressKind.RELATIVE, text
    return AddressKind.BARE, text


def candidate_names(name: str, mode: str = "") -> list[str]:
    """Return lookup names in priority order for ``name`` under ``mode``."""
    stem, ext = posixpath.splitext(name)
    candidates: list[str] = []
    if mode:
        if ext:
            candidates.append(f"{stem}.{mode}{ext}")
        else:
            candidates.append(f"{name}.{mode}.md")
            candidates.append(f"{name}.{mode}")
    candidates.append(name)
    if not ext:
        candidates.append(f"{name}.md")
    return candidates


class Resolver:
    """Maps template addresses onto an ordered stack of layers."""

    def __init__(self, layers: Sequence[Layer], mode: str = "") -> None:
        if not layers:
            raise ValueError("Resolver needs at least one layer.")
        self._layers = tuple(layers)
        self.mode = mode

    @property
    def layers(self) -> tuple[Layer, ...]:
        return self._layers

    def resolve(
        self, address: str, current: Template | None = None, mode: str | None = None
    ) -> tuple[Layer, str]:
        """Return the layer and in-layer path that ``address`` names."""
        active_mode = self.mode if mode is None else mode
        kind, name = classify_address(address)
        if kind is AddressKind.SYSTEM:
            return self._search(self._layers[-1:], name, address, active_mode)
        if kind is AddressKind.REPO_ROOT:
            return self._search(self._layers[:1], name, address, active_mode)
        if kind is AddressKind.RELATIVE:
            if current is None:
                if name.startswith("./"):
                    return self._search(self._layers, name[2:], address, active_mode)
                raise ResolutionError(
                    f"relative template address '{address}' needs a current template", address
                )
            joined = posixpath.normpath(posixpath.join(posixpath.dirname(current.path), name))
            if joined == ".." or joined.startswith("../"):
                raise ResolutionError(
                    f"relative template address '{address}' escapes its layer", address
                )
            return self._search((current.layer,), joined, address, active_mode)
        return self._search(self._layers, name, address, active_mode)

    def load(
        self, address: str, current: Template | None = None, mode: str | None = None
    ) -> Template:
        """Resolve ``address`` and parse the template it names."""
        return load_template(self, address, current=current, mode=mode)

    def _search(
        self, layers: Sequence[Layer], name: str, address: str, mode: str
    ) -> tuple[Layer, str]:
        if name:
            candidates = [
                cleaned
                for cleaned in (normalize_layer_path(item) for item in candidate_names(name, mode))
                if cleaned is not None
            ]
            for layer in layers:
                for candidate in candidates:
                    if layer.exists(candidate):
                        return layer, candidate
        raise TemplateNotFoundError(address)


def load_template(
    resolver: Resolver, address: str, current: Template | None = None, mode: str | None = None
) -> Template:
    """Resolve ``address`` through ``resolver`` and parse its front matter and body."""
    layer, path = resolver.resolve(address, current=current, mode=mode)
    return parse_template(path, layer.read(path), layer, address=address)
