"""Template loading, layered resolution and rendering."""

from .frontmatter import FrontMatter, parse_front_matter, split_front_matter
from .layers import DirectoryLayer, Layer, MemoryLayer, PackageLayer
from .renderer import MAX_NESTING_DEPTH, Renderer, RenderState, split_addresses
from .resolver import AddressKind, Resolver, candidate_names, classify_address, load_template
from .template import Template, parse_template

__all__ = [
    "MAX_NESTING_DEPTH",
    "AddressKind",
    "DirectoryLayer",
    "FrontMatter",
    "Layer",
    "MemoryLayer",
    "PackageLayer",
    "RenderState",
    "Renderer",
    "Resolver",
    "Template",
    "candidate_names",
    "classify_address",
    "load_template",
    "parse_front_matter",
    "parse_template",
    "split_addresses",
    "split_front_matter",
]
