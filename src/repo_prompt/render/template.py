"""Loaded template model."""

from __future__ import annotations

from dataclasses import dataclass, replace

from repo_prompt.render.frontmatter import FrontMatter, parse_front_matter, split_front_matter
from repo_prompt.render.layers import Layer


@dataclass(slots=True, frozen=True)
class Template:
    """A template body plus the layer it was loaded from."""

    path: str
    body: str
    front_matter: FrontMatter
    raw_front_matter: str
    layer: Layer
    address: str = ""
    tag: str = ""

    @property
    def identity(self) -> tuple[str, str]:
        """Layer name and path; two loads of the same file compare equal."""
        return self.layer.name, self.path

    def with_overrides(self, **fields: str) -> Template:
        """Return a copy whose front matter fields are replaced by non-empty values."""
        changes = {key: value for key, value in fields.items() if value}
        if not changes:
            return self
        return replace(self, front_matter=replace(self.front_matter, **changes))


def parse_template(path: str, text: str, layer: Layer, address: str = "") -> Template:
    """Split and parse ``text`` into a Template."""
    tag, raw, body = split_front_matter(text)
    return Template(
        path=path,
        body=body,
        front_matter=parse_front_matter(raw),
        raw_front_matter=raw,
        layer=layer,
        address=address or path,
        tag=tag,
    )
