"""Error hierarchy shared by parsing, resolution, rendering and metrics."""

from __future__ import annotations


class PromptError(Exception):
    """Base class for recoverable prompt assembly failures."""


class PatternError(PromptError):
    """Raised when a selection query cannot be parsed."""

    def __init__(self, message: str, fragment: str) -> None:
        super().__init__(message)
        self.fragment = fragment


class FrontMatterError(PromptError):
    """Raised when template front matter is malformed."""


class ResolutionError(PromptError):
    """Raised when a template address cannot be mapped to a layer."""

    def __init__(self, message: str, address: str) -> None:
        super().__init__(message)
        self.address = address


class TemplateNotFoundError(ResolutionError):
    """Raised when no layer contains the requested template."""

    def __init__(self, address: str) -> None:
        super().__init__(f"template '{address}' not found in any filesystem", address)


class CompositionError(PromptError):
    """Raised when layouts, partials or before/after blocks fail to compose."""


class LayoutCycleError(CompositionError):
    """Raised when a template is revisited while composing layouts."""

    def __init__(self, path: str) -> None:
        super().__init__(f"layout cycle detected: {path}")
        self.path = path


class LayoutDepthError(CompositionError):
    """Raised when layout nesting exceeds the configured bound."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(f"layout nesting too deep (max {limit}): {path}")
        self.path = path
        self.limit = limit


class RangeOrderError(PromptError):
    """Raised when line extraction receives ranges that are not normalized."""


class MetricsClosedError(PromptError):
    """Raised when the metrics collector is used outside its lifecycle."""


class ContentSourceError(PromptError):
    """Raised when a content source cannot be loaded."""

    def __init__(self, message: str, spec: str) -> None:
        super().__init__(message)
        self.spec = spec
