"""Content loaders for ``--content`` sources."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, TextIO

import httpx
import pyperclip

from repo_prompt.errors import ContentSourceError

DEFAULT_HTTP_TIMEOUT = 30.0


class ContentLoader(Protocol):
    """Produces one block of user content."""

    def load(self) -> str: ...


@dataclass(slots=True, frozen=True)
class TextLoader:
    text: str

    def load(self) -> str:
        return self.text


@dataclass(slots=True, frozen=True)
class StdinLoader:
    stream: TextIO | None = None

    def load(self) -> str:
        return (self.stream or sys.stdin).read()


@dataclass(slots=True, frozen=True)
class FileLoader:
    path: str

    def load(self) -> str:
        target = Path(self.path).expanduser()
        try:
            return target.read_text(encoding="utf-8")
        except OSError as exc:
            raise ContentSourceError(f"failed to read file '{self.path}': {exc}", self.path) from exc


@dataclass(slots=True, frozen=True)
class HttpLoader:
    """Fetches a URL with httpx; a client may be injected for tests."""

    url: str
    client: httpx.Client | None = field(default=None, compare=False)
    timeout: float = DEFAULT_HTTP_TIMEOUT

    def load(self) -> str:
        try:
            if self.client is not None:
                response = self.client.get(self.url)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ContentSourceError(f"failed to fetch '{self.url}': {exc}", self.url) from exc
        return response.text


@dataclass(slots=True, frozen=True)
class ShellLoader:
    """Runs a shell command and returns its standard output."""

    command: str
    cwd: Path | None = None

    def load(self) -> str:
        completed = subprocess.run(
            self.command,
            shell=True,
            cwd=self.cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if completed.returncode != 0:
            raise ContentSourceError(
                f"command '{self.command}' exited with {completed.returncode}: "
                f"{completed.stderr.strip()}",
                self.command,
            )
        return completed.stdout


@dataclass(slots=True, frozen=True)
class ClipboardLoader:
    def load(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            raise ContentSourceError(f"failed to read clipboard: {exc}", "clipboard") from exc
