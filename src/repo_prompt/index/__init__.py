"""Repository listing, ignore handling and tree diagrams."""

from .directory import DirectoryIndex
from .tree import render_tree
from .walker import IndexItem, should_exclude, walk_repository

__all__ = ["DirectoryIndex", "IndexItem", "render_tree", "should_exclude", "walk_repository"]
