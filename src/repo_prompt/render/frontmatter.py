"""Front matter splitting and parsing for template files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass

from repo_prompt.errors import FrontMatterError

DELIMITERS = ("---", "+++", "```")
FRONT_MATTER_KEYS = ("layout", "select", "dirtree", "before", "after", "mode")


@dataclass(slots=True, frozen=True)
class FrontMatter:
    """Recognized template metadata; every field is a ``;``-list or plain string."""

    layout: str = ""
    select: str = ""
    dirtree: str = ""
    before: str = ""
    after: str = ""
    mode: str = ""


def split_front_matter(text: str) -> tuple[str, str, str]:
    """Split ``text`` into ``(tag, raw_front_matter, body)``.

    Leading blank lines are skipped. A document without an opening
    delimiter has no front matter and its body is the whole text.
    """
    lines = text.split("\n")
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines):
        return "", "", text

    opening = lines[start]
    delimiter = next((mark for mark in DELIMITERS if opening.startswith(mark)), None)
    if delimiter is None:
        return "", "", text
    tag = opening[len(delimiter) :].strip()

    for index in range(start + 1, len(lines)):
        if lines[index].rstrip("\r") == delimiter:
            raw = "\n".join(lines[start + 1 : index])
            body = "\n".join(lines[index + 1 :])
            return tag, raw, body
    raise FrontMatterError(f"front matter not closed; expected closing delimiter '{delimiter}'")


def parse_front_matter(raw: str) -> FrontMatter:
    """Parse TOML front matter into a FrontMatter."""
    if not raw.strip():
        return FrontMatter()
    try:
        payload = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise FrontMatterError(f"failed to parse TOML: {exc}") from exc
    values: dict[str, str] = {}
    for key in FRONT_MATTER_KEYS:
        if key not in payload:
            continue
        value = payload[key]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            value = ";".join(value)
        if not isinstance(value, str):
            raise FrontMatterError(f"front matter field '{key}' must be a string")
        values[key] = value
    return FrontMatter(**values)
