from __future__ import annotations

import pytest

from repo_prompt.metrics import SimpleCounter, TiktokenCounter, build_counter, line_count


class _FakeEncoding:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def encode(self, text: str, disallowed_special: object = "all") -> list[int]:
        self.calls.append((text, disallowed_special))
        return list(range(len(text.split())))


def test_simple_counter_uses_bytes_over_four() -> None:
    assert SimpleCounter().count("abcdefgh\nij") == (11, 2, 2)
    assert SimpleCounter().count("") == (0, 0, 1)
    assert SimpleCounter().count("é") == (2, 0, 1)


def test_line_count_counts_newlines_plus_one() -> None:
    assert line_count("a") == 1
    assert line_count("a\nb\n") == 3


def test_tiktoken_counter_strips_and_allows_special_tokens() -> None:
    encoding = _FakeEncoding()
    counter = TiktokenCounter(encoding=encoding)
    assert counter.count("  one two <|endoftext|>\n") == (24, 3, 2)
    assert encoding.calls == [("one two <|endoftext|>", ())]


def test_build_counter_by_name() -> None:
    assert isinstance(build_counter("simple"), SimpleCounter)
    with pytest.raises(ValueError, match="Unknown counter 'words'"):
        build_counter("words")
