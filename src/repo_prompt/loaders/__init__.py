"""Content sources for user-supplied prompt text."""

from .registry import LoaderFactory, LoaderRegistry, default_registry
from .sources import (
    ClipboardLoader,
    ContentLoader,
    FileLoader,
    HttpLoader,
    ShellLoader,
    StdinLoader,
    TextLoader,
)

__all__ = [
    "ClipboardLoader",
    "ContentLoader",
    "FileLoader",
    "HttpLoader",
    "LoaderFactory",
    "LoaderRegistry",
    "ShellLoader",
    "StdinLoader",
    "TextLoader",
    "default_registry",
]
