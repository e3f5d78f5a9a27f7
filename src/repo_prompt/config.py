"""Configuration loading and deterministic merge order.

Precedence, lowest first: built-in defaults, ``repo_prompt.toml`` at the
repository root, the ``REPO_PROMPT_TEMPLATES`` environment variable, then
command-line overrides.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from repo_prompt.metrics.counter import COUNTER_NAMES, DEFAULT_ENCODING

CONFIG_FILE_NAME = "repo_prompt.toml"
TEMPLATES_ENV_VAR = "REPO_PROMPT_TEMPLATES"
USER_TEMPLATE_DIR = "~/.repo_prompt"
MAX_WORKERS_CAP = 64

DEFAULT_EXCLUDE_GLOBS = ("**/__pycache__/**", "**/.venv/**", "**/node_modules/**")


@dataclass(slots=True, frozen=True)
class TemplatesConfig:
    """Extra template directories and resolution mode."""

    dirs: tuple[Path, ...]
    mode: str
    sandboxed: bool


@dataclass(slots=True, frozen=True)
class IndexConfig:
    """Repository walk settings."""

    exclude_globs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class MetricsConfig:
    """Token counter selection and worker pool size."""

    counter: str
    encoding: str
    workers: int | None


@dataclass(slots=True, frozen=True)
class LogConfig:
    """Optional JSONL run log."""

    path: Path | None


@dataclass(slots=True, frozen=True)
class PromptConfig:
    """Fully merged configuration."""

    repo_root: Path
    templates: TemplatesConfig
    index: IndexConfig
    metrics: MetricsConfig
    log: LogConfig

    def template_dirs(self) -> tuple[Path, ...]:
        """Return directory layers in priority order, excluding the built-in layer."""
        ordered: list[Path] = [self.repo_root]
        for directory in self.templates.dirs:
            if directory.is_dir() and directory not in ordered:
                ordered.append(directory)
        user_dir = Path(USER_TEMPLATE_DIR).expanduser()
        if user_dir.is_dir() and user_dir not in ordered:
            ordered.append(user_dir)
        return tuple(ordered)

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable snapshot for diagnostics."""
        return {
            "repo_root": str(self.repo_root),
            "templates": {
                "dirs": [str(path) for path in self.templates.dirs],
                "mode": self.templates.mode,
                "sandboxed": self.templates.sandboxed,
            },
            "index": {"exclude_globs": list(self.index.exclude_globs)},
            "metrics": {
                "counter": self.metrics.counter,
                "encoding": self.metrics.encoding,
                "workers": self.metrics.workers,
            },
            "log": {"path": str(self.log.path) if self.log.path is not None else None},
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    mode: str | None = None
    counter: str | None = None
    workers: int | None = None
    log_path: Path | None = None
    template_dirs: tuple[Path, ...] = ()


def default_config(repo_root: Path) -> PromptConfig:
    """Build default config for a given repository root."""
    return PromptConfig(
        repo_root=repo_root.resolve(),
        templates=TemplatesConfig(dirs=(), mode="", sandboxed=False),
        index=IndexConfig(exclude_globs=DEFAULT_EXCLUDE_GLOBS),
        metrics=MetricsConfig(counter="simple", encoding=DEFAULT_ENCODING, workers=None),
        log=LogConfig(path=None),
    )


def load_repo_config_file(repo_root: Path) -> dict[str, object]:
    """Load optional repo_prompt.toml from the repository root."""
    config_path = repo_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _string(value: object, section: str, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Config field '{section}.{field}' must be a string.")
    return value


def _counter_name(value: object, field: str) -> str:
    if not isinstance(value, str) or value not in COUNTER_NAMES:
        raise ValueError(f"Config field '{field}' must be one of: {', '.join(COUNTER_NAMES)}.")
    return value


def _optional_positive_int_with_cap(
    value: object, field: str, default: int | None, cap: int
) -> int | None:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Config field '{field}' must be an integer.")
    if value < 1:
        raise ValueError(f"Config field '{field}' must be >= 1.")
    if value > cap:
        raise ValueError(f"Config field '{field}' must be <= {cap}.")
    return value


def _resolve_dir(raw: str, repo_root: Path) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = repo_root / path
    return path.resolve()


def merge_config(
    base: PromptConfig,
    repo_payload: dict[str, object],
    environ: Mapping[str, str],
    overrides: CliOverrides,
) -> PromptConfig:
    """Merge defaults, repo config, environment, then CLI overrides."""
    templates_payload = _get_table(repo_payload, "templates")
    index_payload = _get_table(repo_payload, "index")
    metrics_payload = _get_table(repo_payload, "metrics")
    log_payload = _get_table(repo_payload, "log")

    template_dirs = base.templates.dirs
    if "dirs" in templates_payload:
        template_dirs = tuple(
            _resolve_dir(raw, base.repo_root)
            for raw in _tuple_of_strings(templates_payload["dirs"], "templates", "dirs")
        )
    mode = base.templates.mode
    if "mode" in templates_payload:
        mode = _string(templates_payload["mode"], "templates", "mode")
    sandboxed = base.templates.sandboxed
    if "sandboxed" in templates_payload:
        raw_sandboxed = templates_payload["sandboxed"]
        if not isinstance(raw_sandboxed, bool):
            raise ValueError("Config field 'templates.sandboxed' must be a boolean.")
        sandboxed = raw_sandboxed

    exclude_globs = base.index.exclude_globs
    if "exclude_globs" in index_payload:
        exclude_globs = _tuple_of_strings(index_payload["exclude_globs"], "index", "exclude_globs")

    counter = base.metrics.counter
    if "counter" in metrics_payload:
        counter = _counter_name(metrics_payload["counter"], "metrics.counter")
    encoding = base.metrics.encoding
    if "encoding" in metrics_payload:
        encoding = _string(metrics_payload["encoding"], "metrics", "encoding")
    workers = _optional_positive_int_with_cap(
        metrics_payload.get("workers"), "metrics.workers", base.metrics.workers, MAX_WORKERS_CAP
    )

    log_path = base.log.path
    if "path" in log_payload:
        log_path = _resolve_dir(_string(log_payload["path"], "log", "path"), base.repo_root)

    env_dirs = tuple(
        _resolve_dir(part.strip(), base.repo_root)
        for part in environ.get(TEMPLATES_ENV_VAR, "").split(os.pathsep)
        if part.strip()
    )

    merged = PromptConfig(
        repo_root=base.repo_root,
        templates=TemplatesConfig(dirs=template_dirs + env_dirs, mode=mode, sandboxed=sandboxed),
        index=IndexConfig(exclude_globs=exclude_globs),
        metrics=MetricsConfig(counter=counter, encoding=encoding, workers=workers),
        log=LogConfig(path=log_path),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: PromptConfig, overrides: CliOverrides) -> PromptConfig:
    """Apply command-line overrides at highest precedence."""
    templates = config.templates
    if overrides.template_dirs:
        templates = replace(
            templates,
            dirs=tuple(_resolve_dir(str(path), config.repo_root) for path in overrides.template_dirs)
            + templates.dirs,
        )
    if overrides.mode is not None:
        templates = replace(templates, mode=overrides.mode)

    metrics = config.metrics
    if overrides.counter is not None:
        metrics = replace(metrics, counter=_counter_name(overrides.counter, "counter"))
    if overrides.workers is not None:
        metrics = replace(
            metrics,
            workers=_optional_positive_int_with_cap(
                overrides.workers, "workers", metrics.workers, MAX_WORKERS_CAP
            ),
        )

    log = config.log
    if overrides.log_path is not None:
        log = LogConfig(path=overrides.log_path.resolve())

    return replace(config, templates=templates, metrics=metrics, log=log)


def load_effective_config(
    repo_root: Path,
    overrides: CliOverrides | None = None,
    environ: Mapping[str, str] | None = None,
) -> PromptConfig:
    """Load and merge config using defaults, repo file, environment, then CLI overrides."""
    base = default_config(repo_root)
    payload = load_repo_config_file(base.repo_root)
    return merge_config(
        base,
        payload,
        os.environ if environ is None else environ,
        overrides or CliOverrides(),
    )
