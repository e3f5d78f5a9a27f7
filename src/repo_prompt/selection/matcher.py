"""Path selection query language.

A query is parsed into an immutable matcher tree and evaluated against a flat
list of repository paths. Recognition order at each level:

``A;B``
    union of the non-empty parts
``=path[#start,end]``
    exact path, optional line range
``A|B``
    left-to-right narrowing (AND)
``!A``
    every candidate except the matches of ``A``
``/expr``
    regular expression searched in the path
``*``, ``?``, ``**``
    shell glob anchored at the repository root
anything else
    case-insensitive subsequence match

A leading ``./`` on a term is dropped.

Evaluation is pure and keeps the order of the input paths.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

import pathspec

from repo_prompt.errors import PatternError
from repo_prompt.selection.files import FileSelection, FileSelectionSet
from repo_prompt.selection.ranges import LineRange
from repo_prompt.selection.sets import PathSet

_EXACT_WITH_RANGE = re.compile(r"^(.+)#(\d+),(\d+)$")
_GLOB_CHARS = ("*", "?")


@dataclass(slots=True, frozen=True)
class Fuzzy:
    pattern: str

    def accepts(self, path: str) -> bool:
        if not self.pattern:
            return True
        needle = self.pattern.lower()
        haystack = path.lower()
        remaining = iter(haystack)
        return all(char in remaining for char in needle)


@dataclass(slots=True, frozen=True)
class Regex:
    source: str
    compiled: re.Pattern[str] = field(compare=False, repr=False)

    def accepts(self, path: str) -> bool:
        return self.compiled.search(path) is not None


@dataclass(slots=True, frozen=True)
class Glob:
    pattern: str
    spec: pathspec.PathSpec = field(compare=False, repr=False)

    def accepts(self, path: str) -> bool:
        return self.spec.match_file(path)


@dataclass(slots=True, frozen=True)
class ExactPath:
    path: str
    ranges: tuple[LineRange, ...] = ()

    def accepts(self, path: str) -> bool:
        return path == self.path


@dataclass(slots=True, frozen=True)
class Negation:
    inner: Matcher


@dataclass(slots=True, frozen=True)
class Compound:
    parts: tuple[Matcher, ...]


@dataclass(slots=True, frozen=True)
class Union:
    parts: tuple[Matcher, ...]


Matcher = Fuzzy | Regex | Glob | ExactPath | Negation | Compound | Union


def parse_matcher(pattern: str) -> Matcher:
    """Parse one query into a matcher tree, raising PatternError on bad syntax."""
    text = pattern.strip()
    _reject_traversal(text)

    if ";" in text:
        parts = _parse_parts(text, ";")
        if not parts:
            raise PatternError("union pattern contains no valid patterns", text)
        return parts[0] if len(parts) == 1 else Union(tuple(parts))

    if text.startswith("="):
        return _parse_exact(text)

    if "|" in text:
        parts = _parse_parts(text, "|")
        if not parts:
            raise PatternError("compound pattern contains no valid patterns", text)
        return parts[0] if len(parts) == 1 else Compound(tuple(parts))

    if text.startswith("!"):
        inner = text[1:].strip()
        if not inner:
            raise PatternError("empty negation pattern '!' is not valid", text)
        return Negation(parse_matcher(inner))

    if text.startswith("./"):
        text = text[2:]

    if text.startswith("/"):
        return _parse_regex(text)

    if any(char in text for char in _GLOB_CHARS):
        return _parse_glob(text)

    return Fuzzy(pattern=text)


def parse_select_lines(text: str) -> list[Matcher]:
    """Parse one matcher per line, skipping blank lines and ``#`` comments."""
    matchers: list[Matcher] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        matchers.append(parse_matcher(stripped))
    return matchers


def evaluate(matcher: Matcher, paths: Iterable[str]) -> list[str]:
    """Return the paths selected by ``matcher`` in input order, without duplicates."""
    return _apply(matcher, list(dict.fromkeys(paths)))


def match(pattern: str, paths: Iterable[str]) -> list[str]:
    """Parse ``pattern`` and evaluate it against ``paths``."""
    return evaluate(parse_matcher(pattern), paths)


def collect_selections(matcher: Matcher, paths: Iterable[str]) -> FileSelectionSet:
    """Evaluate ``matcher`` and keep the line ranges of exact-path terms."""
    candidates = list(dict.fromkeys(paths))
    selections = FileSelectionSet()
    if isinstance(matcher, Union):
        for part in matcher.parts:
            selections.add_all(collect_selections(part, candidates))
        return selections
    ranged = _exact_ranges(matcher)
    for path in _apply(matcher, candidates):
        selections.add(FileSelection(path=path, ranges=ranged.get(path, ())))
    return selections


def _exact_ranges(matcher: Matcher) -> dict[str, tuple[LineRange, ...]]:
    # Ranges of exact terms reached through narrowing; negated terms select nothing.
    if isinstance(matcher, ExactPath):
        return {matcher.path: matcher.ranges} if matcher.ranges else {}
    ranged: dict[str, tuple[LineRange, ...]] = {}
    if isinstance(matcher, Compound):
        for part in matcher.parts:
            for path, ranges in _exact_ranges(part).items():
                ranged[path] = ranged.get(path, ()) + ranges
    return ranged


def _apply(matcher: Matcher, paths: list[str]) -> list[str]:
    if isinstance(matcher, (Fuzzy, Regex, Glob, ExactPath)):
        return [path for path in paths if matcher.accepts(path)]
    if isinstance(matcher, Negation):
        excluded = PathSet(_apply(matcher.inner, paths))
        return [path for path in paths if path not in excluded]
    if isinstance(matcher, Compound):
        current = paths
        for part in matcher.parts:
            current = _apply(part, current)
        return current
    if isinstance(matcher, Union):
        selected: PathSet[str] = PathSet()
        for part in matcher.parts:
            selected = selected.union(PathSet(_apply(part, paths)))
        return [path for path in paths if path in selected]
    raise TypeError(f"Unsupported matcher: {matcher!r}")


def _reject_traversal(text: str) -> None:
    if text.startswith("../") or text.startswith("!../") or text.startswith("=../"):
        raise PatternError("patterns with '../' are not supported for security reasons", text)


def _parse_parts(text: str, separator: str) -> list[Matcher]:
    return [parse_matcher(part) for part in text.split(separator) if part.strip()]


def _parse_exact(text: str) -> ExactPath:
    body = text[1:].strip()
    ranges: tuple[LineRange, ...] = ()
    if "#" in body:
        found = _EXACT_WITH_RANGE.match(body)
        if found is None:
            raise PatternError(
                f"invalid file path format: must be in format path#start,end: {text}", text
            )
        body = found.group(1)
        try:
            ranges = (LineRange(int(found.group(2)), int(found.group(3))),)
        except ValueError as exc:
            raise PatternError(f"invalid line range in '{text}': {exc}", text) from exc
    if body.startswith("./"):
        body = body[2:]
    body = body.rstrip("/")
    if not body:
        raise PatternError("empty exact path pattern", text)
    if ".." in body.split("/"):
        raise PatternError("patterns with '../' are not supported for security reasons", text)
    return ExactPath(path=body, ranges=ranges)


def _parse_regex(text: str) -> Regex:
    source = text[1:]
    try:
        compiled = re.compile(source)
    except re.error as exc:
        raise PatternError(f"invalid regex pattern '{source}': {exc}", source) from exc
    return Regex(source=source, compiled=compiled)


def _parse_glob(text: str) -> Glob:
    try:
        spec = pathspec.GitIgnoreSpec.from_lines(["/" + text.lstrip("/")])
    except ValueError as exc:
        raise PatternError(f"invalid glob pattern '{text}': {exc}", text) from exc
    return Glob(pattern=text, spec=spec)
