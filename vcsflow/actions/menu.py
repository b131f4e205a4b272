"""Context menu for the current selection.

Opening the menu renders items from the last known repository snapshot
straight away, then refreshes the status in the background. If the
refreshed snapshot differs from the one rendered, the items are resolved
again and, when the menu is still showing, `on_update` is called so the
host re-displays it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from vcsflow.actions.commands import CommandRegistry, ContextCommandIDs
from vcsflow.actions.resolver import CommandAvailabilityResolver, ResolutionContext
from vcsflow.lib.context import RepositoryContext, RepositorySnapshot
from vcsflow.lib.errors import VcsflowError
from vcsflow.lib.types import ContextActionArgs, FileDiffArgs, FileDiffArgument, FileStatus

logger = logging.getLogger(__name__)


@dataclass
class MenuItem:
    command: str
    args: Any
    label: str
    caption: str = ""
    enabled: bool = True


def build_args(command: str, files: tuple[FileStatus, ...]) -> Any:
    """Argument object for a context command over the selected files."""
    if command == ContextCommandIDs.DIFF:
        return FileDiffArgs(files=[
            FileDiffArgument(file_path=f.path, is_text=not f.is_binary, status=f.category)
            for f in files
        ])
    return ContextActionArgs(files=list(files))


def build_menu_items(
    registry: CommandRegistry,
    commands: tuple[str, ...],
    files: tuple[FileStatus, ...],
) -> list[MenuItem]:
    items = []
    for command in commands:
        args = build_args(command, files)
        if not registry.is_visible(command, args):
            continue
        items.append(MenuItem(
            command=command,
            args=args,
            label=registry.label(command, args),
            caption=registry.caption(command, args),
            enabled=registry.is_enabled(command, args),
        ))
    return items


class ContextMenu:
    """Menu items for a selection of repository-relative paths."""

    def __init__(
        self,
        repo: RepositoryContext,
        registry: CommandRegistry,
        selection: Callable[[], list[str]],
        context: ResolutionContext = ResolutionContext.FILE_BROWSER,
        on_update: Optional[Callable[[list[MenuItem]], None]] = None,
    ):
        self.repo = repo
        self.registry = registry
        self.selection = selection
        self.resolver = CommandAvailabilityResolver(context)
        self.on_update = on_update
        self.items: list[MenuItem] = []
        self.visible = False
        self._rendered: Optional[RepositorySnapshot] = None

    def update_items(self) -> bool:
        """Resolve the current selection; rebuild items if anything changed."""
        snapshot = self.repo.snapshot
        resolution = self.resolver.resolve(self.selection(), snapshot)
        self._rendered = snapshot
        if resolution.recomputed:
            self.items = build_menu_items(self.registry, resolution.commands, resolution.files)
        return resolution.recomputed

    def open(self) -> asyncio.Task:
        """Show the menu now and reconcile with a fresh status in the background.

        Returns the reconcile task; must be called with a running event loop.
        """
        self.update_items()
        self.visible = True
        return asyncio.ensure_future(self._reconcile(self._rendered))

    def close(self) -> None:
        self.visible = False

    async def execute(self, item: MenuItem) -> Any:
        self.close()
        return await self.registry.execute(item.command, item.args)

    async def _reconcile(self, rendered: RepositorySnapshot) -> None:
        try:
            snapshot = await self.repo.refresh()
        except VcsflowError as e:
            logger.error(f"[MENU] Failed to refresh status for the context menu: {e}")
            return

        if snapshot == rendered:
            return

        was_visible = self.visible
        if self.update_items() and was_visible and self.on_update is not None:
            self.on_update(self.items)
