"""Path selection: query language, line ranges and file selections."""

from .files import (
    BINARY_FILE_PLACEHOLDER,
    LOCK_FILE_PLACEHOLDER,
    FileSelection,
    FileSelectionSet,
    is_lock_file,
    load_select_file,
    looks_binary,
    parse_path_with_range,
    parse_select_toml,
)
from .fzf import FzfQuery, FzfTerm, fzf_filter, parse_fzf
from .matcher import (
    Compound,
    ExactPath,
    Fuzzy,
    Glob,
    Matcher,
    Negation,
    Regex,
    Union,
    collect_selections,
    evaluate,
    match,
    parse_matcher,
    parse_select_lines,
)
from .ranges import LineRange, coalesce_ranges, extract_selected_lines, parse_line_range
from .sets import PathSet

__all__ = [
    "BINARY_FILE_PLACEHOLDER",
    "LOCK_FILE_PLACEHOLDER",
    "Compound",
    "ExactPath",
    "FileSelection",
    "FileSelectionSet",
    "Fuzzy",
    "FzfQuery",
    "FzfTerm",
    "Glob",
    "LineRange",
    "Matcher",
    "Negation",
    "PathSet",
    "Regex",
    "Union",
    "coalesce_ranges",
    "collect_selections",
    "evaluate",
    "extract_selected_lines",
    "fzf_filter",
    "is_lock_file",
    "load_select_file",
    "looks_binary",
    "match",
    "parse_fzf",
    "parse_line_range",
    "parse_matcher",
    "parse_path_with_range",
    "parse_select_lines",
    "parse_select_toml",
]
