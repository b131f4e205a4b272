"""Diff renderers keyed by file extension.

A renderer is a coroutine taking a DiffModel and returning a loaded
widget with an async `refresh()`. Files whose extension has no renderer
fall back to the plain-text unified diff when they are text.
"""

import asyncio
import difflib
import logging
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Optional, Protocol

from vcsflow.diff.model import DiffModel

logger = logging.getLogger(__name__)


class DiffWidget(Protocol):
    async def refresh(self) -> None: ...


DiffBuilder = Callable[[DiffModel], Awaitable[DiffWidget]]


def extension_of(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()


class PlainTextDiff:
    """Unified diff of both sides' text."""

    def __init__(self, model: DiffModel, context_lines: int = 3):
        self.model = model
        self.context_lines = context_lines
        self.reference_text = ""
        self.challenger_text = ""

    async def load(self) -> None:
        self.reference_text, self.challenger_text = await asyncio.gather(
            self.model.reference.content(),
            self.model.challenger.content(),
        )

    async def refresh(self) -> None:
        await self.load()

    def lines(self) -> list[str]:
        model = self.model
        return list(difflib.unified_diff(
            self.reference_text.splitlines(),
            self.challenger_text.splitlines(),
            fromfile=f"{model.filename} ({model.reference.label})",
            tofile=f"{model.filename} ({model.challenger.label})",
            n=self.context_lines,
            lineterm="",
        ))

    def render(self) -> str:
        return "\n".join(self.lines())


async def create_plain_text_diff(model: DiffModel) -> PlainTextDiff:
    widget = PlainTextDiff(model)
    await widget.load()
    return widget


class DiffProviderRegistry:
    """Extension -> renderer lookup."""

    def __init__(self):
        self._builders: dict[str, DiffBuilder] = {}
        self._names: dict[str, str] = {}

    def register(self, name: str, extensions: list[str], builder: DiffBuilder) -> None:
        for ext in extensions:
            ext = ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            if ext in self._builders:
                logger.warning(f"[DIFF] {name} replaces {self._names[ext]} for {ext}")
            self._builders[ext] = builder
            self._names[ext] = name

    def get(self, filename: str) -> Optional[DiffBuilder]:
        return self._builders.get(extension_of(filename))

    def resolve(self, filename: str, is_text: bool) -> Optional[DiffBuilder]:
        """Registered renderer, else the plain-text one for text files."""
        builder = self.get(filename)
        if builder is None and is_text:
            return create_plain_text_diff
        return builder
