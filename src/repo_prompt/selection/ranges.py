"""Line range normalization and single-pass extraction."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from repo_prompt.errors import RangeOrderError

_RANGE_PATTERN = re.compile(r"^\s*(\d+)\s*[,-]\s*(\d+)\s*$")


@dataclass(slots=True, frozen=True, order=True)
class LineRange:
    """1-based inclusive span of lines."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"Line range start must be >= 1, got {self.start}.")
        if self.end < self.start:
            raise ValueError(f"Line range end {self.end} is before start {self.start}.")

    def __str__(self) -> str:
        return f"{self.start},{self.end}"


def parse_line_range(text: str) -> LineRange:
    """Parse ``"start,end"`` (or ``"start-end"``) into a validated range."""
    match = _RANGE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid line range '{text}': expected 'start,end'.")
    return LineRange(int(match.group(1)), int(match.group(2)))


def coalesce_ranges(ranges: Iterable[LineRange]) -> list[LineRange]:
    """Sort ranges and merge overlapping or touching neighbours."""
    ordered = sorted(ranges, key=lambda item: item.start)
    merged: list[LineRange] = []
    for current in ordered:
        if merged and current.start <= merged[-1].end + 1:
            last = merged[-1]
            merged[-1] = LineRange(last.start, max(last.end, current.end))
            continue
        merged.append(current)
    return merged


def ensure_normalized(ranges: list[LineRange]) -> None:
    """Raise RangeOrderError unless ranges are sorted and strictly separated."""
    for index in range(len(ranges) - 1):
        current, following = ranges[index], ranges[index + 1]
        if current.start > following.start:
            raise RangeOrderError(
                f"ranges not sorted: range at index {index} has start {current.start} "
                f"greater than range at index {index + 1} start {following.start}"
            )
        if current.end + 1 >= following.start:
            raise RangeOrderError(
                f"ranges not merged: range at index {index} and index {index + 1} "
                "are overlapping or contiguous"
            )


def extract_selected_lines(path: str, text: str, ranges: list[LineRange]) -> str:
    """Return the selected lines of ``text``, each block headed by a range marker.

    Zero ranges returns ``text`` unchanged. Ranges must already be coalesced.
    """
    if not ranges:
        return text
    ensure_normalized(ranges)

    output: list[str] = []
    index = 0
    announced = -1
    for number, line in enumerate(text.splitlines(), start=1):
        while index < len(ranges) and number > ranges[index].end:
            index += 1
        if index >= len(ranges):
            break
        current = ranges[index]
        if number < current.start:
            continue
        if index > announced:
            announced = index
            output.append(f"\n--- {path}#{current.start},{current.end} ---\n")
        output.append(line)
        output.append("\n")
    return "".join(output)
