"""
Repository context for the engine components.

Components receive a RepositoryContext at construction instead of reaching
for shared globals. The context holds the latest immutable
RepositorySnapshot; refresh() builds a new one and swaps it in. Only
refresh() writes; everything else reads.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from vcsflow.lib.interfaces import VcsApi
from vcsflow.lib.signals import Signal
from vcsflow.lib.types import FileStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositorySnapshot:
    """Status of a repository at one point in time."""
    path: Path
    branch: Optional[str] = None
    top_commit: Optional[str] = None
    files: Mapping[str, FileStatus] = field(default_factory=lambda: MappingProxyType({}))

    def get_file(self, path: str) -> Optional[FileStatus]:
        return self.files.get(path)


def build_snapshot(path: Path, statuses: list[FileStatus],
                   branch: Optional[str] = None, top_commit: Optional[str] = None) -> RepositorySnapshot:
    return RepositorySnapshot(
        path=path,
        branch=branch,
        top_commit=top_commit,
        files=MappingProxyType({f.path: f for f in statuses}),
    )


class RepositoryContext:
    """Current snapshot of one repository plus its change signals.

    Signals:
        status_changed(snapshot): emitted when a refresh changes the file statuses
        head_changed(snapshot): emitted when a refresh sees a new branch or top commit
    """

    def __init__(self, vcs: VcsApi, path: Path):
        self.vcs = vcs
        self.path = path
        self.snapshot = RepositorySnapshot(path=path)
        self.status_changed = Signal("status_changed")
        self.head_changed = Signal("head_changed")

    def get_file(self, path: str) -> Optional[FileStatus]:
        return self.snapshot.get_file(path)

    def relative_path(self, path: str) -> str:
        """Path relative to the repository root (unchanged if outside it)."""
        try:
            return str(Path(path).resolve().relative_to(self.path.resolve()))
        except ValueError:
            return path

    async def refresh(self) -> RepositorySnapshot:
        """Fetch status, branch and top commit; return the new snapshot.

        The returned snapshot is a new object even when nothing changed, so
        readers compare with `is` to know whether a refresh happened and with
        `==` to know whether anything changed.
        """
        statuses = await self.vcs.get_status()
        branch = await self.vcs.current_branch()
        top_commit = await self.vcs.top_commit()

        previous = self.snapshot
        snapshot = build_snapshot(self.path, statuses, branch, top_commit)
        self.snapshot = snapshot

        if dict(previous.files) != dict(snapshot.files):
            logger.debug(f"[REPO] status changed: {len(snapshot.files)} changed file(s)")
            self.status_changed.emit(snapshot)
        if (previous.branch, previous.top_commit) != (branch, top_commit):
            logger.debug(f"[REPO] head changed: {branch}@{(top_commit or '')[:8]}")
            self.head_changed.emit(snapshot)

        return snapshot
