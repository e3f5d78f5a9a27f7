from __future__ import annotations

import pytest

from repo_prompt.errors import RangeOrderError
from repo_prompt.selection import LineRange, coalesce_ranges, extract_selected_lines
from repo_prompt.selection import parse_line_range
from repo_prompt.selection.ranges import ensure_normalized

TEXT = "".join(f"line {number}\n" for number in range(1, 11))


def test_coalesce_sorts_and_merges_overlapping_ranges() -> None:
    ranges = [LineRange(5, 10), LineRange(1, 3), LineRange(8, 15), LineRange(20, 25)]
    assert coalesce_ranges(ranges) == [LineRange(1, 3), LineRange(5, 15), LineRange(20, 25)]


def test_coalesce_merges_touching_ranges() -> None:
    assert coalesce_ranges([LineRange(1, 3), LineRange(4, 6)]) == [LineRange(1, 6)]
    assert coalesce_ranges([LineRange(1, 3), LineRange(5, 6)]) == [
        LineRange(1, 3),
        LineRange(5, 6),
    ]


def test_coalesce_keeps_contained_ranges_inside_outer() -> None:
    assert coalesce_ranges([LineRange(1, 20), LineRange(3, 4)]) == [LineRange(1, 20)]
    assert coalesce_ranges([]) == []


@pytest.mark.parametrize(("start", "end"), [(0, 3), (5, 4), (-1, 2)])
def test_invalid_line_range_is_rejected(start: int, end: int) -> None:
    with pytest.raises(ValueError):
        LineRange(start, end)


def test_parse_line_range_accepts_comma_or_dash() -> None:
    assert parse_line_range("3,7") == LineRange(3, 7)
    assert parse_line_range(" 3 - 7 ") == LineRange(3, 7)
    assert str(LineRange(3, 7)) == "3,7"
    with pytest.raises(ValueError, match="expected 'start,end'"):
        parse_line_range("3:7")


def test_extract_without_ranges_returns_text_verbatim() -> None:
    assert extract_selected_lines("a.txt", TEXT, []) == TEXT


def test_extract_emits_one_marker_per_range() -> None:
    output = extract_selected_lines("a.txt", TEXT, [LineRange(2, 3), LineRange(9, 12)])
    assert output == (
        "\n--- a.txt#2,3 ---\nline 2\nline 3\n"
        "\n--- a.txt#9,12 ---\nline 9\nline 10\n"
    )


def test_extract_range_beyond_end_of_file_is_empty() -> None:
    assert extract_selected_lines("a.txt", TEXT, [LineRange(50, 60)]) == ""


def test_extract_rejects_unnormalized_ranges() -> None:
    with pytest.raises(RangeOrderError, match="ranges not sorted"):
        extract_selected_lines("a.txt", TEXT, [LineRange(5, 6), LineRange(1, 2)])
    with pytest.raises(RangeOrderError, match="ranges not merged"):
        ensure_normalized([LineRange(1, 3), LineRange(4, 6)])
