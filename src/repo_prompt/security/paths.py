"""Confine selection reads and template lookups to one root directory.

Selected files and directory-layer templates are always addressed relative to
their root with ``/`` separators. Anything else (absolute paths, drive letters,
``..`` segments, symlinks that lead out of the tree) is refused.
"""

from __future__ import annotations

import re
from pathlib import Path

from repo_prompt.errors import PromptError

_DRIVE_PREFIX = re.compile(r"^[a-zA-Z]:")
_RELATIVE_HINT = "Address files relative to the root, e.g. 'src/app.py'."


class PathBlockedError(PromptError):
    """A selected file or template path that would leave its root."""

    def __init__(self, path: str, reason: str, hint: str = _RELATIVE_HINT) -> None:
        super().__init__(f"{reason}: '{path}'")
        self.path = path
        self.reason = reason
        self.hint = hint


def split_relative(candidate: str) -> tuple[str, ...]:
    """Return the segments of a relative path, dropping empty and ``.`` segments."""
    normalized = candidate.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PREFIX.match(normalized):
        raise PathBlockedError(candidate, "absolute path not allowed")
    segments = tuple(part for part in normalized.split("/") if part not in ("", "."))
    if not segments or not "".join(segments).strip():
        raise PathBlockedError(candidate, "empty path")
    if ".." in segments:
        raise PathBlockedError(candidate, "parent directory segment not allowed")
    return segments


def resolve_repo_path(repo_root: Path, candidate: str) -> Path:
    """Resolve ``candidate`` below ``repo_root``, following symlinks only inside it."""
    root = repo_root.resolve()
    resolved = root.joinpath(*split_relative(candidate)).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            candidate,
            "symlink leads outside the root",
            hint="Select the link target directly if it belongs to the repository.",
        )
    return resolved
