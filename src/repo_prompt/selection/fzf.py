"""fzf-style path filter: anchored, word-bounded, ANDed terms."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from repo_prompt.errors import PatternError


@dataclass(slots=True, frozen=True)
class FzfTerm:
    """One whitespace-separated term of an fzf query."""

    raw: str
    text: str
    anchor_head: bool = False
    anchor_tail: bool = False
    word_prefix: bool = False
    word_exact: bool = False
    negated: bool = False

    def matches(self, path: str) -> bool:
        hit = _term_hits(self, path)
        return not hit if self.negated else hit


@dataclass(slots=True, frozen=True)
class FzfQuery:
    """Parsed fzf query; an empty query matches every path."""

    terms: tuple[FzfTerm, ...]

    def filter(self, paths: Iterable[str]) -> list[str]:
        """Return the paths accepted by every term, in input order."""
        if not self.terms:
            return list(paths)
        output: list[str] = []
        for path in paths:
            normal = path.replace("\\", "/").lower()
            if all(term.matches(normal) for term in self.terms):
                output.append(path)
        return output


def parse_fzf(query: str) -> FzfQuery:
    """Parse an fzf query, raising PatternError for lonely modifiers."""
    terms: list[FzfTerm] = []
    for raw in query.split():
        text = raw
        negated = False
        if text.startswith("!"):
            negated = True
            text = text[1:]
            if not text:
                raise PatternError(f"empty negation in '{raw}'", raw)

        word_prefix = False
        word_exact = False
        if text.startswith("'"):
            text = text[1:]
            if not text:
                raise PatternError(f"empty term after leading quote in '{raw}'", raw)
            if text.endswith("'"):
                word_exact = True
                text = text[:-1]
                if not text:
                    raise PatternError(f"empty term in '{raw}'", raw)
            else:
                word_prefix = True

        anchor_head = text.startswith("^")
        if anchor_head:
            text = text[1:]
        anchor_tail = text.endswith("$")
        if anchor_tail:
            text = text[:-1]
        if not text:
            raise PatternError(f"empty term after stripping modifiers in '{raw}'", raw)

        terms.append(
            FzfTerm(
                raw=raw,
                text=text.replace("\\", "/").lower(),
                anchor_head=anchor_head,
                anchor_tail=anchor_tail,
                word_prefix=word_prefix,
                word_exact=word_exact,
                negated=negated,
            )
        )
    return FzfQuery(terms=tuple(terms))


def fzf_filter(query: str, paths: Iterable[str]) -> list[str]:
    """Parse ``query`` and filter ``paths`` with it."""
    return parse_fzf(query).filter(paths)


def _term_hits(term: FzfTerm, path: str) -> bool:
    if term.anchor_head and term.anchor_tail and not (term.word_exact or term.word_prefix):
        return path == term.text

    region = path
    if term.anchor_head:
        if not path.startswith(term.text):
            return False
        region = path[: len(term.text)]
    if term.anchor_tail:
        if not path.endswith(term.text):
            return False
        region = path[len(path) - len(term.text) :]

    if term.word_exact:
        return contains_word_exact(region, term.text)
    if term.word_prefix:
        return contains_word_prefix(region, term.text)
    return term.text in region


def is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def has_word_boundary(text: str, index: int, size: int) -> bool:
    """Return True when ``text[index:index + size]`` sits between word boundaries."""
    left = index == 0 or not is_word_char(text[index - 1])
    right = index + size == len(text) or not is_word_char(text[index + size])
    return left and right


def contains_word_exact(text: str, needle: str) -> bool:
    """Return True when ``needle`` occurs in ``text`` as a whole word."""
    if not needle:
        return False
    index = text.find(needle)
    while index >= 0:
        if has_word_boundary(text, index, len(needle)):
            return True
        index = text.find(needle, index + 1)
    return False


def contains_word_prefix(text: str, needle: str) -> bool:
    """Return True when ``needle`` occurs in ``text`` right after a word boundary."""
    if not needle:
        return False
    index = text.find(needle)
    while index >= 0:
        if index == 0 or not is_word_char(text[index - 1]):
            return True
        index = text.find(needle, index + 1)
    return False
