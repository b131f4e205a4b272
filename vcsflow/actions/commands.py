"""Command surface: ids, the registry and the command handlers.

Every command is a coroutine taking one argument object. The registry
owns the error boundary: a VcsflowError escaping a handler becomes an
error notice instead of propagating to the caller. Remote commands log
RUNNING/SUCCESS/ERROR notices themselves.
"""

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Awaitable, Callable, Optional, Union

from vcsflow.diff.model import build_diff_model, default_context
from vcsflow.diff.registry import DiffViewRegistry
from vcsflow.lib.context import RepositoryContext
from vcsflow.lib.errors import VcsflowError
from vcsflow.lib.interfaces import ContentApi, DocumentHost, Prompter, VcsApi
from vcsflow.lib.types import ContextActionArgs, FileDiffArgs, StatusCategory
from vcsflow.notifications import Level, Notifier
from vcsflow.workflow.auth_retry import AuthRetryOperationRunner, CloneArgs, Operation
from vcsflow.workflow.publish import WorkflowOrchestrator

logger = logging.getLogger(__name__)


class CommandIDs:
    PUSH = "git:push"
    PULL = "git:pull"
    CLONE = "git:clone"
    SHOW_DIFF = "git:show-diff"
    PUBLISH = "git:publish"


class ContextCommandIDs:
    OPEN = "git:context-open"
    DIFF = "git:context-diff"
    ADD = "git:context-add"
    STAGE = "git:context-stage"
    TRACK = "git:context-track"
    UNSTAGE = "git:context-unstage"
    DELETE = "git:context-delete"
    DISCARD = "git:context-discard"
    IGNORE = "git:context-ignore"
    IGNORE_EXTENSION = "git:context-ignoreExtension"
    NO_ACTION = "git:no-action"


# Context commands offered per status category, in menu order
CATEGORY_COMMANDS: dict[StatusCategory, list[str]] = {
    StatusCategory.UNSTAGED: [
        ContextCommandIDs.OPEN,
        ContextCommandIDs.DIFF,
        ContextCommandIDs.STAGE,
        ContextCommandIDs.DISCARD,
    ],
    StatusCategory.STAGED: [
        ContextCommandIDs.OPEN,
        ContextCommandIDs.DIFF,
        ContextCommandIDs.STAGE,
        ContextCommandIDs.UNSTAGE,
    ],
    StatusCategory.PARTIALLY_STAGED: [
        ContextCommandIDs.OPEN,
        ContextCommandIDs.DIFF,
        ContextCommandIDs.STAGE,
        ContextCommandIDs.UNSTAGE,
        ContextCommandIDs.DISCARD,
    ],
    StatusCategory.UNTRACKED: [
        ContextCommandIDs.OPEN,
        ContextCommandIDs.TRACK,
        ContextCommandIDs.IGNORE,
        ContextCommandIDs.IGNORE_EXTENSION,
        ContextCommandIDs.DELETE,
    ],
}

Label = Union[str, Callable[[Any], str]]


def pluralized(singular: str, plural: str) -> Callable[[Any], str]:
    """Label that switches on the number of selected files."""
    def label(args: Any) -> str:
        files = getattr(args, "files", None) or []
        return plural if len(files) > 1 else singular
    return label


def _always(args: Any) -> bool:
    return True


@dataclass
class Command:
    id: str
    execute: Callable[[Any], Awaitable[Any]]
    label: Label
    caption: Label = ""
    is_enabled: Callable[[Any], bool] = _always
    is_visible: Callable[[Any], bool] = _always


class CommandRegistry:
    """Commands by id, with the error boundary around execution."""

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or Notifier()
        self._commands: dict[str, Command] = {}

    def add_command(
        self,
        command_id: str,
        execute: Callable[[Any], Awaitable[Any]],
        label: Label,
        caption: Label = "",
        is_enabled: Callable[[Any], bool] = _always,
        is_visible: Callable[[Any], bool] = _always,
    ) -> Command:
        if command_id in self._commands:
            raise ValueError(f"Command already registered: {command_id}")
        command = Command(command_id, execute, label, caption, is_enabled, is_visible)
        self._commands[command_id] = command
        return command

    def has_command(self, command_id: str) -> bool:
        return command_id in self._commands

    def list_commands(self) -> list[str]:
        return list(self._commands)

    def _get(self, command_id: str) -> Command:
        try:
            return self._commands[command_id]
        except KeyError:
            raise KeyError(f"Unknown command: {command_id}") from None

    def label(self, command_id: str, args: Any = None) -> str:
        label = self._get(command_id).label
        return label(args) if callable(label) else label

    def caption(self, command_id: str, args: Any = None) -> str:
        caption = self._get(command_id).caption
        return caption(args) if callable(caption) else caption

    def is_enabled(self, command_id: str, args: Any = None) -> bool:
        return self._get(command_id).is_enabled(args)

    def is_visible(self, command_id: str, args: Any = None) -> bool:
        return self._get(command_id).is_visible(args)

    async def execute(self, command_id: str, args: Any = None) -> Any:
        command = self._get(command_id)
        if not command.is_enabled(args):
            logger.debug(f"[CMD] {command_id} is disabled, ignoring")
            return None

        logger.debug(f"[CMD] {command_id}")
        try:
            return await command.execute(args)
        except VcsflowError as e:
            self.notifier.log(f"{self.label(command_id, args)} failed", Level.ERROR, error=e)
            return None


@dataclass
class Services:
    """Collaborators the command handlers use."""
    repo: RepositoryContext
    vcs: VcsApi
    content: ContentApi
    prompter: Prompter
    documents: DocumentHost
    notifier: Notifier
    runner: AuthRetryOperationRunner
    diffs: DiffViewRegistry
    publisher: Optional[Callable[[], WorkflowOrchestrator]] = None


def add_commands(registry: CommandRegistry, services: Services) -> None:
    """Register the remote, diff, publish and file context commands."""
    repo = services.repo
    vcs = services.vcs
    prompter = services.prompter
    notifier = services.notifier

    async def remote(operation: Operation, verb: str, past: str, args: Any = None) -> Any:
        notifier.log(f"{verb}...", Level.RUNNING)
        try:
            result = await services.runner.run(operation, args)
        except VcsflowError as e:
            logger.error(f"[CMD] Encountered an error when running {operation.value}: {e}")
            notifier.log(f"Failed to {operation.value}", Level.ERROR, error=e)
            return None
        if not result.success:
            notifier.log(f"Failed to {operation.value}", Level.ERROR, details=result.message)
            return None
        notifier.log(f"Successfully {past}", Level.SUCCESS, details=result.message)
        return result

    # --- remote commands ---

    async def push(args: Any) -> Any:
        return await remote(Operation.PUSH, "Pushing", "pushed")

    async def pull(args: Any) -> Any:
        result = await remote(Operation.PULL, "Pulling", "pulled")
        if result is not None:
            await repo.refresh()
        return result

    async def clone(args: Any) -> Any:
        args = args or {}
        url = args.get("url")
        if not url:
            url = await prompter.ask_text("Clone a repo", placeholder="https://host.com/org/repo.git")
            if not url:
                return None
        path = args.get("path") or str(Path(repo.path).parent)
        return await remote(Operation.CLONE, "Cloning", "cloned", CloneArgs(path=path, url=url))

    registry.add_command(CommandIDs.PUSH, push, "Push to Remote",
                         caption="Push code to remote repository")
    registry.add_command(CommandIDs.PULL, pull, "Pull from Remote",
                         caption="Pull latest code from remote repository")
    registry.add_command(CommandIDs.CLONE, clone, "Clone a Repository",
                         caption="Clone a repository from a URL")

    # --- diff and publish ---

    async def show_diff(args: Any) -> Any:
        return await services.diffs.open(args["model"], args.get("is_text", False))

    registry.add_command(CommandIDs.SHOW_DIFF, show_diff, "Show Diff",
                         caption="Display a file diff.")

    async def publish(args: Any) -> Any:
        orchestrator = services.publisher()
        return await orchestrator.run()

    registry.add_command(
        CommandIDs.PUBLISH, publish, "Publish",
        caption="Restart, run, commit and push the current document",
        is_enabled=lambda args: (
            services.publisher is not None
            and services.documents.current_document() is not None
        ),
    )

    # --- file context commands ---

    async def open_files(args: ContextActionArgs) -> None:
        for file in args.files:
            if file.is_deleted:
                notifier.log("Open File Failed", Level.ERROR, details="This file has been deleted!")
                return
            if file.path.endswith("/"):
                logger.info(f"[CMD] Cannot open a folder here: {file.path}")
                continue
            await services.documents.open(str(Path(repo.path) / file.path))

    async def diff_files(args: FileDiffArgs) -> None:
        for file in args.files:
            # nothing to compare to for untracked files
            if file.status == StatusCategory.UNTRACKED:
                continue
            context = file.context or default_context(file.status)
            model = build_diff_model(file.file_path, context, services.content, str(repo.path))
            await registry.execute(CommandIDs.SHOW_DIFF, {"model": model, "is_text": file.is_text})

    async def add_files(args: ContextActionArgs) -> None:
        for file in args.files:
            await vcs.add(file.path)
        await repo.refresh()

    async def unstage_files(args: ContextActionArgs) -> None:
        for file in args.files:
            if file.index_code != "D":
                await vcs.reset(file.path)
        await repo.refresh()

    async def delete_files(args: ContextActionArgs) -> None:
        listing = "\n".join(f"  {f.path}" for f in args.files)
        ok = await prompter.confirm(
            "Delete Files",
            "Are you sure you want to permanently delete the following files? "
            f"This action cannot be undone.\n{listing}",
            accept_label="Delete",
            reject_label="Cancel",
        )
        if not ok:
            return
        for file in args.files:
            try:
                await services.documents.delete(str(Path(repo.path) / file.path))
            except (VcsflowError, OSError) as e:
                notifier.log(f"Deleting {file.path} failed.", Level.ERROR, error=e)
        await repo.refresh()

    async def discard_files(args: ContextActionArgs) -> None:
        listing = "\n".join(f"  {f.path}" for f in args.files)
        ok = await prompter.confirm(
            "Discard changes",
            "Are you sure you want to permanently discard changes to the following files? "
            f"This action cannot be undone.\n{listing}",
            accept_label="Discard",
            reject_label="Cancel",
        )
        if not ok:
            return
        for file in args.files:
            try:
                if file.category in (StatusCategory.STAGED, StatusCategory.PARTIALLY_STAGED):
                    await vcs.reset(file.path)
                # resetting an added file makes it untracked, so checkout would fail
                if file.category == StatusCategory.UNSTAGED or (
                    file.category == StatusCategory.PARTIALLY_STAGED and file.index_code != "A"
                ):
                    await vcs.checkout(path=file.path)
            except VcsflowError as e:
                notifier.log(f"Discard changes for {file.path} failed.", Level.ERROR, error=e)
        await repo.refresh()

    async def ignore_files(args: ContextActionArgs) -> None:
        for file in args.files:
            result = await vcs.ignore(file.path, False)
            notifier.log(result.message, Level.INFO)
        await repo.refresh()

    async def ignore_extensions(args: ContextActionArgs) -> None:
        for extension, path in _extension_paths(args).items():
            ok = await prompter.confirm(
                "Ignore file extension",
                f"Are you sure you want to ignore all {extension} files within this git repository?",
                accept_label="Ignore",
                reject_label="Cancel",
            )
            if ok:
                result = await vcs.ignore(path, True)
                notifier.log(result.message, Level.INFO)
        await repo.refresh()

    def extensions_label(args: ContextActionArgs) -> str:
        extensions = _extensions(args)
        noun = "extension" if len(extensions) == 1 else "extensions"
        return f"Ignore {', '.join(extensions)} {noun} (add to .gitignore)"

    async def no_action(args: Any) -> None:
        return None

    registry.add_command(
        ContextCommandIDs.OPEN, open_files, "Open",
        caption=pluralized("Open selected file", "Open selected files"),
    )
    registry.add_command(
        ContextCommandIDs.DIFF, diff_files, "Diff",
        caption=pluralized("Diff selected file", "Diff selected files"),
    )
    registry.add_command(
        ContextCommandIDs.ADD, add_files, "Add",
        caption=pluralized("Stage or track the changes to selected file",
                           "Stage or track the changes of selected files"),
    )
    registry.add_command(
        ContextCommandIDs.STAGE, add_files, "Stage",
        caption=pluralized("Stage the changes of selected file",
                           "Stage the changes of selected files"),
    )
    registry.add_command(
        ContextCommandIDs.TRACK, add_files, "Track",
        caption=pluralized("Start tracking selected file", "Start tracking selected files"),
    )
    registry.add_command(
        ContextCommandIDs.UNSTAGE, unstage_files, "Unstage",
        caption=pluralized("Unstage the changes of selected file",
                           "Unstage the changes of selected files"),
    )
    registry.add_command(
        ContextCommandIDs.DELETE, delete_files, "Delete",
        caption=pluralized("Delete this file", "Delete these files"),
    )
    registry.add_command(
        ContextCommandIDs.DISCARD, discard_files, "Discard",
        caption=pluralized("Discard recent changes of selected file",
                           "Discard recent changes of selected files"),
    )
    ignore_label = pluralized("Ignore this file (add to .gitignore)",
                              "Ignore these files (add to .gitignore)")
    registry.add_command(ContextCommandIDs.IGNORE, ignore_files, ignore_label, caption=ignore_label)
    registry.add_command(
        ContextCommandIDs.IGNORE_EXTENSION, ignore_extensions, extensions_label,
        caption=pluralized("Ignore this file extension (add to .gitignore)",
                           "Ignore these files extension (add to .gitignore)"),
        is_visible=lambda args: bool(_extensions(args)),
    )
    registry.add_command(
        ContextCommandIDs.NO_ACTION, no_action, "No actions available",
        is_enabled=lambda args: False,
    )


def _extension_paths(args: Any) -> dict[str, str]:
    """Each distinct extension in the selection, mapped to its first file."""
    paths: dict[str, str] = {}
    for file in getattr(args, "files", None) or []:
        extension = PurePosixPath(file.path).suffix
        if extension:
            paths.setdefault(extension, file.path)
    return paths


def _extensions(args: Any) -> list[str]:
    return list(_extension_paths(args))
