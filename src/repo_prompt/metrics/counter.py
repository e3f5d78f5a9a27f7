"""Pluggable byte/token/line counters."""

from __future__ import annotations

from typing import Any, Protocol

import tiktoken

COUNTER_NAMES = ("simple", "tiktoken")
DEFAULT_ENCODING = "cl100k_base"


class Counter(Protocol):
    """Measures one text fragment as ``(bytes, tokens, lines)``."""

    def count(self, text: str) -> tuple[int, int, int]: ...


def line_count(text: str) -> int:
    return text.count("\n") + 1


class SimpleCounter:
    """Estimates one token per four UTF-8 bytes."""

    def count(self, text: str) -> tuple[int, int, int]:
        size = len(text.encode("utf-8"))
        return size, size // 4, line_count(text)


class TiktokenCounter:
    """Counts BPE tokens with a tiktoken encoding."""

    def __init__(self, encoding_name: str = DEFAULT_ENCODING, encoding: Any | None = None) -> None:
        self._encoding = encoding if encoding is not None else tiktoken.get_encoding(encoding_name)

    def count(self, text: str) -> tuple[int, int, int]:
        tokens = self._encoding.encode(text.strip(), disallowed_special=())
        return len(text.encode("utf-8")), len(tokens), line_count(text)


def build_counter(name: str, encoding_name: str = DEFAULT_ENCODING) -> Counter:
    """Return the counter registered under ``name``."""
    if name == "simple":
        return SimpleCounter()
    if name == "tiktoken":
        return TiktokenCounter(encoding_name)
    raise ValueError(f"Unknown counter '{name}'; expected one of {', '.join(COUNTER_NAMES)}.")
