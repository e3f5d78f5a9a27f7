"""Structured logging utilities."""

from .events import JsonlEventLogger, RunEvent, sanitize_metadata, utc_timestamp

__all__ = ["JsonlEventLogger", "RunEvent", "sanitize_metadata", "utc_timestamp"]
