"""Command-line entrypoint: ``repo-prompt out`` and ``repo-prompt ls``."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import TextIO

from repo_prompt.config import CliOverrides, PromptConfig, load_effective_config
from repo_prompt.errors import PromptError
from repo_prompt.index import DirectoryIndex
from repo_prompt.logging import JsonlEventLogger
from repo_prompt.metrics import COUNTER_NAMES
from repo_prompt.pipeline import OutOptions, OutPipeline, build_layers
from repo_prompt.render import Resolver, load_template
from repo_prompt.selection import fzf_filter


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for both subcommands."""
    parser = argparse.ArgumentParser(prog="repo-prompt")
    parser.add_argument("--repo-root", required=False, default=".")
    parser.add_argument("--templates", action="append", default=[], metavar="DIR")
    parser.add_argument("--log", required=False, default=None, metavar="PATH")
    subparsers = parser.add_subparsers(dest="command", required=True)

    out = subparsers.add_parser("out", help="Render a prompt from a template.")
    out.add_argument("template", nargs="?", default="")
    out.add_argument("-l", "--layout", default="")
    out.add_argument("-s", "--select", default="")
    out.add_argument("-d", "--dirtree", default="")
    out.add_argument("-c", "--content", action="append", default=[], metavar="SOURCE")
    out.add_argument("-D", "--data", action="append", default=[], metavar="KEY=VALUE")
    out.add_argument("-o", "--output", default="-")
    out.add_argument("-m", "--mode", default="")
    out.add_argument("--counter", choices=COUNTER_NAMES, default=None)
    out.add_argument("--workers", type=int, default=None)
    out.add_argument("--metrics-json", default=None, metavar="PATH")
    out.add_argument("--no-chart", action="store_true")

    ls = subparsers.add_parser("ls", help="List files selected by a pattern or template.")
    ls.add_argument("pattern", nargs="?", default="")
    ls.add_argument("-t", "--template", default="")
    ls.add_argument("--fzf", action="store_true")
    ls.add_argument("--tree", action="store_true")
    return parser


def run_out(
    config: PromptConfig, args: argparse.Namespace, stdout: TextIO, stderr: TextIO
) -> dict[str, object]:
    options = OutOptions(
        template=args.template,
        layout=args.layout,
        select=args.select,
        dirtree=args.dirtree,
        content=tuple(args.content),
        data=tuple(args.data),
        output=args.output,
        mode=args.mode,
        chart=not args.no_chart,
    )
    pipeline = OutPipeline(config, options, stdout=stdout)
    summary = pipeline.run()
    stderr.write(summary)
    if args.metrics_json == "-":
        stdout.write(pipeline.metrics.to_json() + "\n")
    elif args.metrics_json:
        Path(args.metrics_json).write_text(pipeline.metrics.to_json() + "\n", encoding="utf-8")
    final = pipeline.metrics.get("final", "")
    return {
        "template": options.template,
        "output": options.output,
        "select": options.select,
        "content": list(options.content),
        "files": pipeline.metrics.count_by("file"),
        "tokens": final.tokens if final is not None else 0,
    }


def run_ls(config: PromptConfig, args: argparse.Namespace, stdout: TextIO) -> dict[str, object]:
    index = DirectoryIndex(config.repo_root, config.index.exclude_globs)
    pattern = args.pattern
    if not pattern and args.template:
        template = load_template(Resolver(build_layers(config)), args.template)
        pattern = template.front_matter.select
    if not pattern and not args.tree:
        raise PromptError("either a pattern or --template must be provided")

    if args.tree:
        stdout.write(index.tree(pattern))
        return {"template": args.template, "pattern": pattern}
    if args.fzf:
        paths = fzf_filter(pattern, index.select_all_files())
    else:
        paths = [selection.path for selection in index.select_files(pattern)]
    for path in sorted(paths):
        stdout.write(f"{path}\n")
    return {"template": args.template, "pattern": pattern, "files": len(paths)}


def main(
    argv: list[str] | None = None, stdout: TextIO | None = None, stderr: TextIO | None = None
) -> int:
    """Entrypoint for the repo-prompt command."""
    out_stream = stdout or sys.stdout
    err_stream = stderr or sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    overrides = CliOverrides(
        mode=getattr(args, "mode", None) or None,
        counter=getattr(args, "counter", None),
        workers=getattr(args, "workers", None),
        log_path=Path(args.log) if args.log is not None else None,
        template_dirs=tuple(Path(item) for item in args.templates),
    )
    started = time.perf_counter()
    logger: JsonlEventLogger | None = None
    metadata: dict[str, object] = {}
    error: str | None = None
    try:
        config = load_effective_config(Path(args.repo_root), overrides=overrides)
        if config.log.path is not None:
            logger = JsonlEventLogger(config.log.path)
        if args.command == "out":
            metadata = run_out(config, args, out_stream, err_stream)
        else:
            metadata = run_ls(config, args, out_stream)
    except (PromptError, ValueError, OSError) as exc:
        error = str(exc)
        err_stream.write(f"error: {error}\n")

    if logger is not None:
        logger.record(
            args.command,
            ok=error is None,
            error=error,
            duration_ms=int((time.perf_counter() - started) * 1000),
            **metadata,
        )
    return 0 if error is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
