"""Template rendering with layouts, partials and before/after blocks.

Templates are Jinja2 text. Each render sees:

``content``
    the text being wrapped (empty for leaf templates unless supplied)
``repo``
    the data object handed to the Renderer
``partial(address)``
    renders another template's body with the same data
``include(address)``
    inserts another file verbatim

A layout receives the rendered node as ``content``. The conventional slot is
``{% block main %}{{ content }}{% endblock %}``; an empty ``main`` block is
filled with ``content``. For ``layout = "a;b"`` the last listed layout wraps
the node first, so ``a`` is outermost.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from repo_prompt.errors import CompositionError, LayoutCycleError, LayoutDepthError, PromptError
from repo_prompt.metrics import OutputMetrics
from repo_prompt.render.resolver import Resolver
from repo_prompt.render.template import Template

MAX_NESTING_DEPTH = 10

_EMPTY_MAIN_BLOCK = re.compile(
    r"\{%(-?)\s*block\s+main\s*(-?)%\}\s*\{%(-?)\s*endblock(?:\s+main)?\s*(-?)%\}"
)
_FILLED_MAIN_BLOCK = r"{%\1 block main \2%}{{ content }}{%\3 endblock \4%}"


def split_addresses(value: str) -> list[str]:
    """Split a ``;``-separated address list, dropping empty entries."""
    return [part.strip() for part in value.split(";") if part.strip()]


@dataclass(slots=True, frozen=True)
class RenderState:
    """Explicit recursion context threaded through every nested render."""

    visited: frozenset[tuple[str, str]] = field(default_factory=frozenset)
    depth: int = 0
    current: Template | None = None
    mode: str | None = None

    def enter(self, template: Template) -> RenderState:
        if template.identity in self.visited:
            raise LayoutCycleError(template.path)
        return RenderState(
            visited=self.visited | {template.identity},
            depth=self.depth,
            current=template,
            mode=template.front_matter.mode or self.mode,
        )

    def deeper(self) -> RenderState:
        return RenderState(
            visited=self.visited, depth=self.depth + 1, current=self.current, mode=self.mode
        )


class Renderer:
    """Renders templates resolved through a layered Resolver."""

    def __init__(
        self,
        resolver: Resolver,
        data: object | None = None,
        metrics: OutputMetrics | None = None,
        max_depth: int = MAX_NESTING_DEPTH,
        sandboxed: bool = False,
    ) -> None:
        self._resolver = resolver
        self._data = data
        self._metrics = metrics
        self._max_depth = max_depth
        environment_class = SandboxedEnvironment if sandboxed else jinja2.Environment
        self._environment = environment_class(
            autoescape=False,
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    def load(self, address: str, current: Template | None = None) -> Template:
        return self._resolver.load(address, current=current)

    def render(self, address: str, content: str = "") -> str:
        """Load ``address`` and render it with its layouts."""
        return self.render_template(self.load(address), content=content)

    def render_template(
        self, template: Template, content: str = "", state: RenderState | None = None
    ) -> str:
        """Render ``template`` with its before/after blocks, then wrap it in its layouts."""
        return self._render_node(template, content, state or RenderState())

    def render_partial(self, address: str, state: RenderState, content: str = "") -> str:
        """Render the body of ``address`` without its layouts."""
        partial = self._resolver.load(address, current=state.current, mode=state.mode)
        nested = state.deeper()
        if nested.depth > self._max_depth:
            raise LayoutDepthError(partial.path, self._max_depth)
        nested = nested.enter(partial)
        self._record(partial.path, partial.body)
        return self._execute(partial, content, nested)

    def include(self, address: str, state: RenderState) -> str:
        """Return the raw text of ``address``."""
        layer, path = self._resolver.resolve(address, current=state.current, mode=state.mode)
        text = layer.read(path)
        self._record(path, text)
        return text

    def _render_node(self, template: Template, content: str, state: RenderState) -> str:
        layouts = split_addresses(template.front_matter.layout)
        if state.depth > self._max_depth or state.depth + len(layouts) > self._max_depth:
            raise LayoutDepthError(template.path, self._max_depth)
        state = state.enter(template)
        self._record(template.path, template.body)

        # Every layout of one list must be distinct and not already on the path.
        resolved = [
            self._resolver.load(address, current=template, mode=state.mode) for address in layouts
        ]
        seen = set(state.visited)
        for layout in resolved:
            if layout.identity in seen:
                raise LayoutCycleError(layout.path)
            seen.add(layout.identity)

        before = self._render_blocks(template.front_matter.before, state, "before")
        body = self._execute(template, content, state)
        after = self._render_blocks(template.front_matter.after, state, "after")
        node = "\n".join(piece for piece in (before, body, after) if piece)

        for layout in reversed(resolved):
            node = self._render_node(layout, node, state.deeper())
        return node

    def _render_blocks(self, addresses: str, state: RenderState, label: str) -> str:
        pieces: list[str] = []
        for address in split_addresses(addresses):
            try:
                if address.startswith("!"):
                    pieces.append(self.render_partial(address[1:].strip(), state, content=""))
                else:
                    pieces.append(self.include(address, state))
            except (PromptError, OSError) as exc:
                raise CompositionError(
                    f"error processing {label} files: error processing file '{address}': {exc}"
                ) from exc
        return "\n".join(piece for piece in pieces if piece)

    def _execute(self, template: Template, content: str, state: RenderState) -> str:
        try:
            compiled = self._environment.from_string(
                _EMPTY_MAIN_BLOCK.sub(_FILLED_MAIN_BLOCK, template.body)
            )
        except jinja2.TemplateSyntaxError as exc:
            raise CompositionError(f"error parsing template {template.path}: {exc}") from exc
        variables: dict[str, object] = {
            "content": content,
            "repo": self._data,
            "partial": self._bind_partial(state, content),
            "include": lambda address: self.include(address, state),
        }
        try:
            return compiled.render(variables)
        except jinja2.TemplateError as exc:
            raise CompositionError(f"error executing template {template.path}: {exc}") from exc

    def _bind_partial(self, state: RenderState, content: str) -> Callable[[str], str]:
        def partial(address: str) -> str:
            return self.render_partial(address, state, content=content)

        return partial

    def _record(self, path: str, text: str) -> None:
        if self._metrics is not None:
            self._metrics.add("template", path, text)
