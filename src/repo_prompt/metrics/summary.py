"""Token breakdown chart grouped by directory."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field

from repo_prompt.metrics.collector import MetricKey, OutputMetrics

COLLAPSE_THRESHOLD = 0.01
_PCT_WIDTH = 6
_TOKENS_WIDTH = 6
_GAP_WIDTH = 2
_MIN_KEY_WIDTH = 8


@dataclass(slots=True)
class _Node:
    name: str
    is_file: bool = False
    tokens: int = 0
    children: dict[str, _Node] = field(default_factory=dict)


def trim_prefix(text: str, width: int) -> str:
    """Keep the tail of ``text`` so it fits ``width`` characters."""
    if len(text) <= width:
        return text
    return "…" + text[len(text) - width + 1 :]


def render_token_breakdown(
    metrics: OutputMetrics,
    bar_width: int | None = None,
    fill: str = "█",
    width: int | None = None,
) -> str:
    """Render a bar chart of token use.

    Files are rolled up per directory; a directory's children that each
    account for less than 1% of all tokens collapse into one ``dir/**`` bar.
    Template, user and final metrics are listed as their own bars.
    """
    items = metrics.items()
    total_tokens = sum(item.tokens for item in items.values())
    if total_tokens == 0:
        return "No tokens recorded\n"

    root = _Node(name=".")
    file_count = 0
    for key, item in items.items():
        if key.type != "file":
            continue
        file_count += 1
        node = root
        parts = key.key.replace("\\", "/").split("/")
        for part in parts[:-1]:
            node = node.children.setdefault(part, _Node(name=part))
        node.children[parts[-1]] = _Node(name=parts[-1], is_file=True, tokens=item.tokens)
    _roll_up(root)

    buckets: list[tuple[str, int]] = []
    _collect(root, "", total_tokens, buckets, is_root=True)

    entries: list[tuple[MetricKey, int, float]] = [
        (MetricKey("file", name), tokens, tokens * 100 / total_tokens) for name, tokens in buckets
    ]
    for key, item in items.items():
        if key.type == "file":
            continue
        entries.append((key, item.tokens, item.tokens * 100 / total_tokens))
    entries.sort(key=lambda entry: (entry[2], str(entry[0])))

    columns = width if width is not None else shutil.get_terminal_size((80, 24)).columns
    bar = bar_width if bar_width is not None and bar_width > 0 else int(columns * 0.35)
    key_width = max(_MIN_KEY_WIDTH, columns - (bar + _PCT_WIDTH + _TOKENS_WIDTH + _GAP_WIDTH * 3))
    max_tokens = max(tokens for _, tokens, _ in entries) or 1

    lines: list[str] = []
    for key, tokens, pct in entries:
        length = int(tokens / max_tokens * bar + 0.5)
        if length == 0 and tokens > 0:
            length = 1
        lines.append(_row(fill * length, pct, tokens, trim_prefix(str(key), key_width), bar))
    lines.append(_row("─" * bar, 100.0, total_tokens, "TOTAL", bar))
    lines.append("")
    lines.append(f"Summary: {file_count} files, {total_tokens} tokens")
    return "\n".join(lines) + "\n"


def _row(bar_text: str, pct: float, tokens: int, label: str, bar_width: int) -> str:
    return f"{bar_text:<{bar_width}}  {pct:5.1f}%  {tokens:>{_TOKENS_WIDTH}}  {label}".rstrip()


def _roll_up(node: _Node) -> int:
    if node.is_file:
        return node.tokens
    node.tokens = sum(_roll_up(child) for child in node.children.values())
    return node.tokens


def _collect(
    node: _Node, parent: str, total: int, buckets: list[tuple[str, int]], is_root: bool = False
) -> None:
    current = parent if is_root else (f"{parent}/{node.name}" if parent else node.name)
    if node.is_file:
        buckets.append((current, node.tokens))
        return
    small = 0
    for name in sorted(node.children):
        child = node.children[name]
        if child.tokens < total * COLLAPSE_THRESHOLD:
            small += child.tokens
        else:
            _collect(child, current, total, buckets)
    if small > 0:
        buckets.append((f"{current}/**" if current else "**", small))
