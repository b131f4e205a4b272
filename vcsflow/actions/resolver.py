"""Which context commands a selection offers.

The available commands are the union of each selected file's category
commands, with stage and track collapsed into add and the context's
exclusions removed. A selection of files without status offers only
the no-action sentinel.

The resolver remembers the last command set and file paths it handed
out and reports whether a new result differs, so the menu rebuilds its
items only when something visible changed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from vcsflow.actions.commands import CATEGORY_COMMANDS, ContextCommandIDs
from vcsflow.lib.context import RepositorySnapshot
from vcsflow.lib.types import FileStatus, StatusCategory

logger = logging.getLogger(__name__)


class ResolutionContext(Enum):
    """Where the menu is shown."""
    FILE_BROWSER = "file-browser"
    PANEL = "panel"


# File browser already has its own open and delete entries
EXCLUDED_COMMANDS: dict[ResolutionContext, frozenset[str]] = {
    ResolutionContext.FILE_BROWSER: frozenset({ContextCommandIDs.OPEN, ContextCommandIDs.DELETE}),
    ResolutionContext.PANEL: frozenset(),
}

COLLAPSED_COMMANDS = {
    ContextCommandIDs.STAGE: ContextCommandIDs.ADD,
    ContextCommandIDs.TRACK: ContextCommandIDs.ADD,
}


@dataclass(frozen=True)
class Resolution:
    commands: tuple[str, ...]
    files: tuple[FileStatus, ...]  # selected paths that have a status
    recomputed: bool


def resolve_commands(
    statuses: Iterable[FileStatus],
    context: ResolutionContext = ResolutionContext.FILE_BROWSER,
) -> list[str]:
    """Ordered, duplicate-free command ids for files with these statuses."""
    categories: list[StatusCategory] = []
    for status in statuses:
        if status.category not in categories:
            categories.append(status.category)

    if not categories:
        return [ContextCommandIDs.NO_ACTION]

    excluded = EXCLUDED_COMMANDS[context]
    commands: list[str] = []
    for category in categories:
        for command in CATEGORY_COMMANDS[category]:
            if command in excluded:
                continue
            command = COLLAPSED_COMMANDS.get(command, command)
            if command not in commands:
                commands.append(command)
    return commands


class CommandAvailabilityResolver:
    """Resolves selections and remembers the last result."""

    def __init__(self, context: ResolutionContext = ResolutionContext.FILE_BROWSER):
        self.context = context
        self._commands: Optional[tuple[str, ...]] = None
        self._paths: Optional[tuple[str, ...]] = None

    @property
    def commands(self) -> Optional[tuple[str, ...]]:
        return self._commands

    def resolve(self, paths: list[str], snapshot: RepositorySnapshot) -> Resolution:
        """
        Resolve `paths` (repository-relative) against `snapshot`.

        `recomputed` is True when the command set or the selection differs
        from the previous call (or on the first call). Otherwise the previous
        command tuple is returned unchanged.
        """
        files = tuple(s for s in (snapshot.get_file(p) for p in paths) if s is not None)
        commands = tuple(resolve_commands(files, self.context))
        selection = tuple(paths)

        commands_changed = (
            self._commands is None
            or len(commands) != len(self._commands)
            or not set(commands) <= set(self._commands)
        )
        files_changed = self._paths is None or selection != self._paths

        if not (commands_changed or files_changed):
            return Resolution(commands=self._commands, files=files, recomputed=False)

        logger.debug(f"[MENU] {len(selection)} selected, commands: {', '.join(commands)}")
        self._commands = commands
        self._paths = selection
        return Resolution(commands=commands, files=files, recomputed=True)

    def reset(self) -> None:
        self._commands = None
        self._paths = None
