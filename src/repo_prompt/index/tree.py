"""Text tree diagrams of walked repository items."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass, field

from repo_prompt.index.walker import IndexItem


@dataclass(slots=True)
class _TreeNode:
    name: str
    is_dir: bool
    children: list[_TreeNode] = field(default_factory=list)


def render_tree(root_label: str, items: Iterable[IndexItem]) -> str:
    """Render items (parents before children) as an indented tree under ``root_label``."""
    root = _TreeNode(name=root_label, is_dir=True)
    nodes: dict[str, _TreeNode] = {".": root}
    for item in items:
        if item.path in ("", "."):
            continue
        node = nodes.setdefault(
            item.path, _TreeNode(name=posixpath.basename(item.path), is_dir=item.is_dir)
        )
        parent = nodes.get(posixpath.dirname(item.path) or ".")
        if parent is not None:
            parent.children.append(node)

    lines = [root_label]
    _write_children(root, "", lines)
    return "\n".join(lines) + "\n"


def _write_children(node: _TreeNode, prefix: str, lines: list[str]) -> None:
    for index, child in enumerate(node.children):
        last = index == len(node.children) - 1
        connector = "└── " if last else "├── "
        lines.append(f"{prefix}{connector}{child.name}{'/' if child.is_dir else ''}")
        _write_children(child, prefix + ("    " if last else "│   "), lines)
