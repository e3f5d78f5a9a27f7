"""Path confinement for selection reads and template lookups."""

from .paths import PathBlockedError, resolve_repo_path, split_relative

__all__ = ["PathBlockedError", "resolve_repo_path", "split_relative"]
