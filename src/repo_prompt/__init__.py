"""Prompt assembly engine: path queries, layered templates and token metrics."""

__version__ = "0.1.0"
