"""End-to-end ``out`` pipeline: select, render, measure and write a prompt."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import TextIO
from urllib.parse import parse_qs

import pyperclip

from repo_prompt.config import PromptConfig
from repo_prompt.errors import PromptError
from repo_prompt.index import DirectoryIndex
from repo_prompt.loaders import LoaderRegistry, default_registry
from repo_prompt.metrics import OutputMetrics, build_counter, render_token_breakdown
from repo_prompt.render import (
    DirectoryLayer,
    Layer,
    PackageLayer,
    Renderer,
    Resolver,
    Template,
    load_template,
)
from repo_prompt.selection import FileSelection, load_select_file

DEFAULT_TEMPLATE = "files"
DEFAULT_LAYOUT = "files"
REPO_PROMPT_FILE = ".vibe.md"
STDOUT_TARGET = "-"
CLIPBOARD_TARGET = "clipboard"


@dataclass(slots=True, frozen=True)
class OutOptions:
    """Inputs of one ``out`` run; empty strings mean "not given"."""

    template: str = ""
    layout: str = ""
    select: str = ""
    dirtree: str = ""
    content: tuple[str, ...] = ()
    data: tuple[str, ...] = ()
    output: str = STDOUT_TARGET
    mode: str = ""
    chart: bool = True


def parse_data_params(params: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Parse ``k=v`` or ``k1=v1&k2=v2`` strings; the first value of a key wins."""
    result: dict[str, str] = {}
    for raw in params:
        try:
            values = parse_qs(raw, keep_blank_values=True, strict_parsing=True)
        except ValueError as exc:
            raise PromptError(f"invalid data parameter {raw!r}: {exc}") from exc
        for key, found in values.items():
            if found:
                result[key] = found[0]
    return result


def find_repo_root(start: Path) -> Path | None:
    """Walk up from ``start`` to the first directory holding ``.git``."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").is_dir():
            return candidate
    return None


def load_repo_prompts(start: Path) -> str:
    """Concatenate ``.vibe.md`` files from the git root down to ``start``."""
    current = start.resolve()
    repo_root = find_repo_root(current)
    if repo_root is None:
        return ""
    directories = [repo_root]
    for part in current.relative_to(repo_root).parts:
        directories.append(directories[-1] / part)

    chunks: list[str] = []
    for directory in directories:
        prompt_path = directory / REPO_PROMPT_FILE
        if not prompt_path.is_file():
            continue
        relative = prompt_path.relative_to(repo_root).as_posix()
        chunks.append(f"<!-- {relative} -->\n{prompt_path.read_text(encoding='utf-8')}\n\n")
    return "".join(chunks)


class OutData:
    """Object exposed to templates as ``repo``; every accessor is computed once."""

    def __init__(
        self,
        index: DirectoryIndex,
        metrics: OutputMetrics,
        select: str,
        dirtree: str,
        content: str,
        data: dict[str, str],
        working_directory: Path,
    ) -> None:
        self._index = index
        self._metrics = metrics
        self._select = select
        self._dirtree = dirtree
        self._content = content
        self._data = data
        self._working_directory = working_directory

    @cached_property
    def selections(self) -> list[FileSelection]:
        if not self._select.strip():
            return []
        if self._select.endswith(".toml"):
            select_path = self._index.root / self._select.strip()
            if select_path.is_file():
                return load_select_file(select_path).values()
        return self._index.select_files(self._select)

    @cached_property
    def files(self) -> str:
        """Selected files, each preceded by a ``Read File`` marker."""
        chunks: list[str] = []
        for selection in self.selections:
            text = selection.read(self._index.root)
            self._metrics.add("file", selection.path, text)
            chunks.append(text)
        return "".join(chunks)

    @cached_property
    def directory_tree(self) -> str:
        return self._index.tree(self._dirtree)

    @cached_property
    def repo_prompts(self) -> str:
        return load_repo_prompts(self._working_directory)

    @cached_property
    def selected_paths(self) -> list[str]:
        return [selection.path for selection in self.selections]

    @property
    def content(self) -> str:
        return self._content

    @property
    def data(self) -> dict[str, str]:
        return dict(self._data)

    @property
    def working_directory(self) -> str:
        return str(self._working_directory)


def build_layers(config: PromptConfig) -> list[Layer]:
    """Directory layers in priority order followed by the bundled templates."""
    layers: list[Layer] = [DirectoryLayer(path) for path in config.template_dirs()]
    layers.append(PackageLayer())
    return layers


class OutPipeline:
    """Wires config, index, loaders, renderer and metrics for one ``out`` run."""

    def __init__(
        self,
        config: PromptConfig,
        options: OutOptions,
        metrics: OutputMetrics | None = None,
        loaders: LoaderRegistry | None = None,
        index: DirectoryIndex | None = None,
        stdout: TextIO | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.config = config
        self.options = options
        self.metrics = metrics or OutputMetrics(
            build_counter(config.metrics.counter, config.metrics.encoding),
            workers=config.metrics.workers,
        )
        self.loaders = loaders or default_registry(shell_cwd=config.repo_root)
        self.index = index or DirectoryIndex(config.repo_root, config.index.exclude_globs)
        self.resolver = Resolver(build_layers(config), mode=options.mode or config.templates.mode)
        self._stdout = stdout
        self._cwd = cwd

    def run(self) -> str:
        """Render, write the output, drain metrics and return the summary text."""
        try:
            rendered = self.render()
            self.write(rendered)
        finally:
            self.metrics.wait()
        if self.options.chart:
            return render_token_breakdown(self.metrics)
        return self.metrics.human_summary()

    def render(self) -> str:
        """Return the rendered prompt without writing it anywhere."""
        template = self.load_template()
        content = self.load_content()
        data = OutData(
            index=self.index,
            metrics=self.metrics,
            select=template.front_matter.select,
            dirtree=template.front_matter.dirtree,
            content=content,
            data=parse_data_params(self.options.data),
            working_directory=self._cwd or Path.cwd(),
        )
        renderer = Renderer(
            self.resolver,
            data=data,
            metrics=self.metrics,
            sandboxed=self.config.templates.sandboxed,
        )
        rendered = renderer.render_template(template, content=content)
        self.metrics.add("final", "", rendered)
        return rendered

    def load_template(self) -> Template:
        """Load the requested template and apply command-line front matter overrides."""
        address = self.options.template
        if not address and self.options.select:
            address = DEFAULT_TEMPLATE
        if not address:
            raise PromptError("no template given; pass a template or --select")
        template = load_template(self.resolver, address)
        if not self.options.mode and not self.config.templates.mode and template.front_matter.mode:
            self.resolver.mode = template.front_matter.mode
        template = template.with_overrides(
            layout=self.options.layout,
            select=self.options.select,
            dirtree=self.options.dirtree,
        )
        if (
            not template.front_matter.layout
            and template.front_matter.select
            and not self._is_default_layout(template)
        ):
            template = template.with_overrides(layout=DEFAULT_LAYOUT)
        return template

    def load_content(self) -> str:
        """Load every content spec, measuring each one as user input."""
        chunks: list[str] = []
        for spec in self.options.content:
            text = self.loaders.load(spec)
            self.metrics.add("user", spec, text)
            chunks.append(text)
        return "\n\n".join(chunks)

    def write(self, rendered: str) -> None:
        target = self.options.output
        if target == STDOUT_TARGET:
            stream = self._stdout or sys.stdout
            stream.write(rendered)
            stream.flush()
        elif target == CLIPBOARD_TARGET:
            try:
                pyperclip.copy(rendered)
            except pyperclip.PyperclipException as exc:
                raise PromptError(f"failed to copy to clipboard: {exc}") from exc
        else:
            output_path = Path(target).expanduser()
            if not output_path.is_absolute():
                output_path = (self._cwd or Path.cwd()) / output_path
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(rendered, encoding="utf-8")

    def _is_default_layout(self, template: Template) -> bool:
        layer, path = self.resolver.resolve(DEFAULT_LAYOUT)
        return template.identity == (layer.name, path)
