"""Diff models: two content sides of one file.

The challenger is the newer side (the working tree or the index), the
reference the older one (usually HEAD). Stamping a side replaces it with
a newer `updated_at` and emits `changed`; views use that to offer a
refresh.
"""

import dataclasses
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from vcsflow.lib.interfaces import ContentApi
from vcsflow.lib.signals import Signal
from vcsflow.lib.types import DiffContext, SpecialRef, StatusCategory

ContentProvider = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class DiffSide:
    label: str
    source: str  # ref name, or WORKING / INDEX
    content: ContentProvider
    updated_at: float = 0.0


@dataclass(frozen=True)
class DiffIdentity:
    """(filename, challenger, reference): two views with equal identity are the same view."""
    filename: str
    challenger: str
    reference: str

    @property
    def view_id(self) -> str:
        return f"diff-{self.filename}-{self.reference}-{self.challenger}"


class DiffModel:
    """Both sides of a diff plus a `changed(side_name)` signal."""

    def __init__(self, filename: str, challenger: DiffSide, reference: DiffSide):
        self.filename = filename
        self._challenger = challenger
        self._reference = reference
        self.changed = Signal("changed")

    @property
    def challenger(self) -> DiffSide:
        return self._challenger

    @property
    def reference(self) -> DiffSide:
        return self._reference

    @property
    def identity(self) -> DiffIdentity:
        return DiffIdentity(self.filename, self._challenger.source, self._reference.source)

    def stamp_challenger(self, updated_at: Optional[float] = None) -> None:
        self._challenger = dataclasses.replace(
            self._challenger, updated_at=time.time() if updated_at is None else updated_at
        )
        self.changed.emit("challenger")

    def stamp_reference(self, updated_at: Optional[float] = None) -> None:
        self._reference = dataclasses.replace(
            self._reference, updated_at=time.time() if updated_at is None else updated_at
        )
        self.changed.emit("reference")

    def __repr__(self):
        return f"DiffModel({self.filename!r}, {self._reference.source}..{self._challenger.source})"


def default_context(status: Optional[StatusCategory]) -> DiffContext:
    """Staged files compare the index with HEAD; everything else the working tree."""
    if status == StatusCategory.STAGED:
        return DiffContext(current_ref=SpecialRef.INDEX.value, previous_ref="HEAD")
    return DiffContext(current_ref=SpecialRef.WORKING.value, previous_ref="HEAD")


def _label(ref: str) -> str:
    if ref == SpecialRef.WORKING.value:
        return "Current"
    if ref == SpecialRef.INDEX.value:
        return "Staged"
    return ref[:7] if len(ref) == 40 else ref


def build_diff_model(
    filename: str,
    context: DiffContext,
    content: ContentApi,
    repo_root: str,
) -> DiffModel:
    """Model whose sides fetch `filename` at the context's two references."""

    def provider(ref: str) -> ContentProvider:
        async def fetch() -> str:
            return await content.fetch_content(filename, ref, repo_root)
        return fetch

    now = time.time()
    return DiffModel(
        filename,
        challenger=DiffSide(
            label=_label(context.current_ref),
            source=context.current_ref,
            content=provider(context.current_ref),
            updated_at=now,
        ),
        reference=DiffSide(
            label=_label(context.previous_ref),
            source=context.previous_ref,
            content=provider(context.previous_ref),
            updated_at=now,
        ),
    )
