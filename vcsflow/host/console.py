"""Console host: plain prompts, file-backed documents, printed diff views.

PlainPrompter reads answers from stdin and is used when no terminal UI is
available (pipes, CI). The view host prints each diff once it has loaded.
"""

import asyncio
import getpass
import logging
from pathlib import Path
from typing import Optional

from pydantic import SecretStr
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from vcsflow.diff.providers import PlainTextDiff
from vcsflow.diff.registry import DiffView, LoadState
from vcsflow.lib.types import Credential
from vcsflow.notifications import Level, Notice

logger = logging.getLogger(__name__)

LEVEL_STYLES = {
    Level.RUNNING: "cyan",
    Level.SUCCESS: "green",
    Level.INFO: "",
    Level.WARNING: "yellow",
    Level.ERROR: "bold red",
}


def prompt(message: str, default: str = "", hint: str = "") -> Optional[str]:
    """Prompt for a line of input. Returns None at end of input.

    An empty answer gives `default`. `hint` is only shown, never returned.
    """
    if default:
        display = f"{message} [{default}]: "
    elif hint:
        display = f"{message} (e.g. {hint}): "
    else:
        display = f"{message}: "
    try:
        value = input(display).strip()
    except EOFError:
        return None
    return value if value else default


def prompt_secret(message: str) -> Optional[str]:
    """Read a line without echoing it. Returns None at end of input."""
    try:
        return getpass.getpass(f"{message}: ")
    except EOFError:
        return None


def prompt_bool(message: str, default: bool = False) -> bool:
    default_str = "Y/n" if default else "y/N"
    try:
        value = input(f"{message} [{default_str}]: ").strip().lower()
    except EOFError:
        return False
    if not value:
        return default
    return value in ("y", "yes", "true", "1")


def prompt_choice(message: str, choices: list[tuple[str, str]]) -> Optional[str]:
    """Numbered choice. Returns the chosen value, or None on empty input or EOF."""
    print(f"\n{message}")
    for i, (_, desc) in enumerate(choices, 1):
        print(f"  {i}. {desc}")

    while True:
        try:
            selection = input(f"Select [1-{len(choices)}, Enter to cancel]: ").strip()
        except EOFError:
            return None
        if not selection:
            return None
        try:
            idx = int(selection)
        except ValueError:
            print("Please enter a valid number")
            continue
        if 1 <= idx <= len(choices):
            return choices[idx - 1][0]
        print(f"Please enter a number between 1 and {len(choices)}")


class PlainPrompter:
    """Prompter over stdin/stdout. Blocking reads run in a worker thread."""

    async def confirm(self, title: str, body: str, accept_label: str = "Yes",
                      reject_label: str = "Cancel") -> bool:
        return await asyncio.to_thread(
            prompt_bool, f"{title}\n{body}\n{accept_label}? ({reject_label} otherwise)"
        )

    async def ask_text(self, title: str, placeholder: str = "") -> Optional[str]:
        return await asyncio.to_thread(prompt, title, "", placeholder)

    async def ask_credentials(self, title: str, message: str, hint: str = "") -> Optional[Credential]:
        text = f"{title}\n{message}" + (f"\n{hint}" if hint else "")
        print(text)
        username = await asyncio.to_thread(prompt, "username")
        if not username:
            return None
        password = await asyncio.to_thread(prompt_secret, "password")
        if password is None:
            return None
        return Credential(username=username, password=SecretStr(password))

    async def choose(self, title: str, body: str, options: dict[str, str]) -> Optional[str]:
        return await asyncio.to_thread(prompt_choice, f"{title}\n{body}", list(options.items()))


class FileDocument:
    """A file on disk. Never dirty: editors save before the CLI runs."""

    def __init__(self, path: str):
        self.path = path

    @property
    def dirty(self) -> bool:
        return False

    async def save(self) -> None:
        return None


class FileDocumentHost:
    """Current document is the file given on the command line."""

    def __init__(self, current: Optional[str] = None, console: Optional[Console] = None):
        self.console = console or Console()
        self._current = FileDocument(current) if current else None

    def current_document(self) -> Optional[FileDocument]:
        return self._current

    async def open(self, path: str) -> None:
        self._current = FileDocument(path)
        self.console.print(f"[bold]Opened[/bold] {escape(path)}")

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(Path(path).unlink)
        if self._current is not None and self._current.path == path:
            self._current = None


class ConsoleViewHost:
    """Keeps diff views by id; show() prints one."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.views: dict[str, DiffView] = {}

    def find(self, view_id: str) -> Optional[DiffView]:
        return self.views.get(view_id)

    def add(self, view: DiffView) -> None:
        self.views[view.id] = view
        view.closed.subscribe(lambda v: self.views.pop(v.id, None))

    def activate(self, view_id: str) -> None:
        logger.debug(f"[VIEW] activate {view_id}")

    def show(self, view: DiffView) -> None:
        self.console.rule(escape(view.caption))
        if view.state == LoadState.FAILED:
            self.console.print(f"[red]{escape(view.error or '')}[/red]")
        elif isinstance(view.content, PlainTextDiff):
            text = view.content.render()
            if text:
                self.console.print(Syntax(text, "diff", theme="ansi_dark"))
            else:
                self.console.print("[dim]No changes[/dim]")
        else:
            self.console.print(f"[dim]{view.title} loaded[/dim]")


def console_sink(console: Console):
    """Notifier sink that prints notices."""
    def sink(notice: Notice) -> None:
        style = LEVEL_STYLES[notice.level]
        text = escape(notice.message)
        if notice.details:
            text += f" [dim]({escape(notice.details)})[/dim]"
        if notice.error is not None:
            text += f": {escape(str(notice.error))}"
        console.print(f"[{style}]{text}[/{style}]" if style else text)
    return sink
