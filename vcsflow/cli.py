#!/usr/bin/env python3
"""vcsflow CLI entrypoint."""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vcsflow.actions.commands import (
    CommandIDs,
    CommandRegistry,
    ContextCommandIDs,
    Services,
    add_commands,
)
from vcsflow.actions.menu import build_args, build_menu_items
from vcsflow.actions.resolver import CommandAvailabilityResolver, ResolutionContext
from vcsflow.diff.model import build_diff_model, default_context
from vcsflow.diff.providers import DiffProviderRegistry
from vcsflow.diff.registry import DiffViewRegistry
from vcsflow.git import GitClient
from vcsflow.host.console import (
    ConsoleViewHost,
    FileDocumentHost,
    PlainPrompter,
    console_sink,
)
from vcsflow.host.environment import CommandEnvironment
from vcsflow.host.links import GitRemoteLinks
from vcsflow.host.tui import TextualPrompter
from vcsflow.lib.config import Settings, load_settings
from vcsflow.lib.context import RepositoryContext
from vcsflow.lib.errors import ConfigError
from vcsflow.lib.types import DiffContext, SpecialRef
from vcsflow.notifications import Notifier, desktop_sink
from vcsflow.workflow.auth_retry import AuthRetryOperationRunner, RetryPolicy
from vcsflow.workflow.publish import WorkflowOrchestrator
from vcsflow.workflow.state import WorkflowState

logger = logging.getLogger(__name__)

ACTIONS = {
    "open": ContextCommandIDs.OPEN,
    "diff": ContextCommandIDs.DIFF,
    "add": ContextCommandIDs.ADD,
    "stage": ContextCommandIDs.STAGE,
    "track": ContextCommandIDs.TRACK,
    "unstage": ContextCommandIDs.UNSTAGE,
    "delete": ContextCommandIDs.DELETE,
    "discard": ContextCommandIDs.DISCARD,
    "ignore": ContextCommandIDs.IGNORE,
    "ignore-extension": ContextCommandIDs.IGNORE_EXTENSION,
}


@dataclass
class App:
    """Everything one CLI invocation needs."""
    console: Console
    settings: Settings
    repo: RepositoryContext
    registry: CommandRegistry
    services: Services
    views: ConsoleViewHost
    environment: CommandEnvironment


def build_app(args) -> App:
    repo_path = Path(args.repo).resolve()
    settings = load_settings(repo_path, Path(args.config) if args.config else None)
    console = Console()

    notifier = Notifier()
    notifier.add_sink(console_sink(console))
    if settings.desktop_notifications:
        notifier.add_sink(desktop_sink)

    client = GitClient(repo_path, settings)
    repo = RepositoryContext(client, repo_path)
    use_tui = not args.plain and sys.stdin.isatty()
    prompter = TextualPrompter() if use_tui else PlainPrompter()
    runner = AuthRetryOperationRunner(
        client, prompter, RetryPolicy.from_settings(settings), settings.auth_error_messages
    )

    document = getattr(args, "file", None)
    documents = FileDocumentHost(str(Path(document).resolve()) if document else None, console)
    environment = CommandEnvironment(getattr(args, "run", None), repo_path)
    views = ConsoleViewHost(console)
    diffs = DiffViewRegistry(
        views,
        DiffProviderRegistry(),
        notifier,
        head_changed=repo.head_changed,
        contents_changed=environment.contents_changed,
        path_key=repo.relative_path,
    )
    links = GitRemoteLinks(client.remote_url)

    def publisher() -> WorkflowOrchestrator:
        return WorkflowOrchestrator(
            repo, client, runner, prompter, documents, environment, links, notifier, settings
        )

    services = Services(
        repo=repo,
        vcs=client,
        content=client,
        prompter=prompter,
        documents=documents,
        notifier=notifier,
        runner=runner,
        diffs=diffs,
        publisher=publisher,
    )
    registry = CommandRegistry(notifier)
    add_commands(registry, services)
    return App(console, settings, repo, registry, services, views, environment)


def _relative(app: App, paths: list[str]) -> list[str]:
    return [app.repo.relative_path(str(Path(p).resolve())) for p in paths]


async def _status(app: App, args) -> int:
    snapshot = await app.repo.refresh()
    table = Table(title=f"{snapshot.branch or '(detached HEAD)'} @ {(snapshot.top_commit or '')[:8]}")
    table.add_column("XY")
    table.add_column("Category")
    table.add_column("Path")
    for status in snapshot.files.values():
        path = status.path if not status.renamed_from else f"{status.renamed_from} -> {status.path}"
        table.add_row(f"{status.index_code}{status.worktree_code}", status.category.value, escape(path))
    app.console.print(table)
    return 0


async def _actions(app: App, args) -> int:
    snapshot = await app.repo.refresh()
    context = ResolutionContext.PANEL if args.panel else ResolutionContext.FILE_BROWSER
    resolution = CommandAvailabilityResolver(context).resolve(_relative(app, args.paths), snapshot)
    for item in build_menu_items(app.registry, resolution.commands, resolution.files):
        marker = "" if item.enabled else " [dim](disabled)[/dim]"
        app.console.print(f"{escape(item.label)}{marker}  [dim]{item.command}[/dim]")
    return 0


async def _do(app: App, args) -> int:
    snapshot = await app.repo.refresh()
    files = []
    for path in _relative(app, args.paths):
        status = snapshot.get_file(path)
        if status is None:
            app.console.print(f"[yellow]No changes: {escape(path)}[/yellow]")
            continue
        files.append(status)
    if not files:
        return 1

    command = ACTIONS[args.action]
    await app.registry.execute(command, build_args(command, tuple(files)))
    _show_views(app)
    return 0


async def _remote(app: App, command: str, args=None) -> int:
    result = await app.registry.execute(command, args)
    return 0 if result is not None else 1


async def _diff(app: App, args) -> int:
    await app.repo.refresh()
    path = _relative(app, [args.path])[0]
    status = app.repo.get_file(path)
    if args.ref:
        context = DiffContext(current_ref=SpecialRef.WORKING.value, previous_ref=args.ref)
    elif args.staged:
        context = DiffContext(current_ref=SpecialRef.INDEX.value, previous_ref="HEAD")
    else:
        context = default_context(status.category if status else None)

    model = build_diff_model(path, context, app.services.content, str(app.repo.path))
    is_text = not (status and status.is_binary)
    view = await app.registry.execute(CommandIDs.SHOW_DIFF, {"model": model, "is_text": is_text})
    if view is None:
        return 1
    app.views.show(view)
    return 0


async def _publish(app: App, args) -> int:
    if args.file:
        app.environment.watch(app.repo.relative_path(str(Path(args.file).resolve())))
    await app.repo.refresh()
    outcome = await app.registry.execute(CommandIDs.PUBLISH)
    if outcome is None:
        app.console.print("[red]Nothing to publish[/red]")
        return 1
    if outcome.url:
        app.console.print(f"[bold]Link:[/bold] {escape(outcome.url)}")
    return 0 if outcome.state != WorkflowState.FAILED else 1


def _show_views(app: App) -> None:
    for view in list(app.views.views.values()):
        app.views.show(view)


def _run(handler):
    def run(args) -> int:
        try:
            app = build_app(args)
        except ConfigError as e:
            print(f"ERROR: {e}")
            return 2
        return asyncio.run(handler(app, args))
    return run


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(prog='vcsflow', description='Git workflows for the current repository')
    parser.add_argument('--repo', '-C', default='.', help='Repository path (default: current directory)')
    parser.add_argument('--config', help='Settings file (default: <repo>/.vcsflow.env)')
    parser.add_argument('--plain', action='store_true', help='Plain stdin prompts instead of the TUI')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='More logging (-vv for debug)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # vcsflow status
    p_status = subparsers.add_parser('status', help='Show changed files')
    p_status.set_defaults(func=_run(_status))

    # vcsflow actions
    p_actions = subparsers.add_parser('actions', help='List actions available for files')
    p_actions.add_argument('paths', nargs='+', help='Selected files')
    p_actions.add_argument('--panel', action='store_true', help='Resolve as the git panel (includes open/delete)')
    p_actions.set_defaults(func=_run(_actions))

    # vcsflow do
    p_do = subparsers.add_parser('do', help='Run a file action')
    p_do.add_argument('action', choices=sorted(ACTIONS), help='Action to run')
    p_do.add_argument('paths', nargs='+', help='Selected files')
    p_do.set_defaults(func=_run(_do))

    # vcsflow push / pull
    p_push = subparsers.add_parser('push', help='Push to remote')
    p_push.set_defaults(func=_run(lambda app, args: _remote(app, CommandIDs.PUSH)))
    p_pull = subparsers.add_parser('pull', help='Pull from remote')
    p_pull.set_defaults(func=_run(lambda app, args: _remote(app, CommandIDs.PULL)))

    # vcsflow clone
    p_clone = subparsers.add_parser('clone', help='Clone a repository')
    p_clone.add_argument('url', nargs='?', help='Repository URL (prompted if omitted)')
    p_clone.add_argument('--into', help='Directory to clone into (default: parent of --repo)')
    p_clone.set_defaults(func=_run(
        lambda app, args: _remote(app, CommandIDs.CLONE, {"url": args.url, "path": args.into})
    ))

    # vcsflow diff
    p_diff = subparsers.add_parser('diff', help='Show the diff of a file')
    p_diff.add_argument('path', help='File to diff')
    p_diff.add_argument('--staged', action='store_true', help='Compare the index with HEAD')
    p_diff.add_argument('--ref', help='Compare the working tree with this ref')
    p_diff.set_defaults(func=_run(_diff))

    # vcsflow publish
    p_publish = subparsers.add_parser('publish', help='Re-run, commit and push a file')
    p_publish.add_argument('file', help='File to publish')
    p_publish.add_argument('--run', help='Command that regenerates the file before publishing')
    p_publish.set_defaults(func=_run(_publish))

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
