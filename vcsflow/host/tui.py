"""Textual prompts for the console host.

Each prompt runs a one-screen App that shows a modal and exits with the
modal's result, so the engine can `await` it like any other prompt.
"""

from typing import Optional

from pydantic import SecretStr
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Input, Label, Static

from vcsflow.lib.types import Credential

DIALOG_CSS = """
.dialog {
    width: auto;
    max-width: 80;
    height: auto;
    padding: 1 2;
    background: $surface;
    border: solid $warning;
}

.dialog-title {
    text-style: bold;
    margin-bottom: 1;
}

.dialog-hint {
    color: $text-muted;
}

.dialog-error {
    color: $error;
}
"""


class ConfirmModal(ModalScreen[bool]):
    """Yes/no confirmation with custom button labels."""

    DEFAULT_CSS = "ConfirmModal { align: center middle; }"

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, body: str, accept_label: str = "Yes", reject_label: str = "Cancel") -> None:
        super().__init__()
        self.dialog_title = title
        self.body = body
        self.accept_label = accept_label
        self.reject_label = reject_label

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self.dialog_title, classes="dialog-title"),
            Static(self.body, markup=False),
            Static(f"[y] {self.accept_label} / [n] {self.reject_label}", markup=False, classes="dialog-hint"),
            classes="dialog",
        )

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class TextInputModal(ModalScreen[Optional[str]]):
    """Single line of text; Escape dismisses with None."""

    DEFAULT_CSS = "TextInputModal { align: center middle; }"

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, placeholder: str = "") -> None:
        super().__init__()
        self.dialog_title = title
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        yield Container(
            Label(self.dialog_title, classes="dialog-title"),
            Input(placeholder=self.placeholder, id="text-input"),
            Label("Press Enter to submit, Escape to cancel", classes="dialog-hint"),
            classes="dialog",
        )

    def on_mount(self) -> None:
        self.query_one("#text-input", Input).focus()

    @on(Input.Submitted)
    def on_submit(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class CredentialsModal(ModalScreen[Optional[Credential]]):
    """Username and password; submitted from the password field."""

    DEFAULT_CSS = "CredentialsModal { align: center middle; }"

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, message: str, hint: str = "") -> None:
        super().__init__()
        self.dialog_title = title
        self.message = message
        self.hint = hint

    def compose(self) -> ComposeResult:
        widgets = [
            Label(self.dialog_title, classes="dialog-title"),
            Label(self.message),
        ]
        if self.hint:
            widgets.append(Label(self.hint, classes="dialog-error"))
        widgets += [
            Input(placeholder="username", id="username"),
            Input(placeholder="password / personal access token", password=True, id="password"),
            Label("Press Enter to submit, Escape to cancel", classes="dialog-hint"),
        ]
        yield Container(*widgets, classes="dialog")

    def on_mount(self) -> None:
        self.query_one("#username", Input).focus()

    @on(Input.Submitted, "#username")
    def on_username(self, event: Input.Submitted) -> None:
        self.query_one("#password", Input).focus()

    @on(Input.Submitted, "#password")
    def on_password(self, event: Input.Submitted) -> None:
        username = self.query_one("#username", Input).value
        self.dismiss(Credential(username=username, password=SecretStr(event.value)))

    def action_cancel(self) -> None:
        self.dismiss(None)


class ChoiceModal(ModalScreen[Optional[str]]):
    """Numbered options; pressing a number picks that option's key."""

    DEFAULT_CSS = "ChoiceModal { align: center middle; }"

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, body: str, options: dict[str, str]) -> None:
        super().__init__()
        self.dialog_title = title
        self.body = body
        self.keys = list(options)
        self.labels = list(options.values())

    def compose(self) -> ComposeResult:
        lines = "\n".join(f"[{i}] {label}" for i, label in enumerate(self.labels, 1))
        yield Container(
            Static(self.dialog_title, classes="dialog-title"),
            Static(self.body, markup=False),
            Static(lines, markup=False),
            Static("Escape to cancel", classes="dialog-hint"),
            classes="dialog",
        )

    def on_key(self, event) -> None:
        if event.character and event.character.isdigit():
            index = int(event.character) - 1
            if 0 <= index < len(self.keys):
                self.dismiss(self.keys[index])

    def action_cancel(self) -> None:
        self.dismiss(None)


class PromptApp(App):
    """Shows one modal and exits with its result."""

    CSS = DIALOG_CSS

    def __init__(self, modal: ModalScreen) -> None:
        super().__init__()
        self.modal = modal

    def on_mount(self) -> None:
        self.push_screen(self.modal, self.exit)


class TextualPrompter:
    """Prompter backed by textual modals."""

    async def _show(self, modal: ModalScreen):
        return await PromptApp(modal).run_async()

    async def confirm(self, title: str, body: str, accept_label: str = "Yes",
                      reject_label: str = "Cancel") -> bool:
        return bool(await self._show(ConfirmModal(title, body, accept_label, reject_label)))

    async def ask_text(self, title: str, placeholder: str = "") -> Optional[str]:
        return await self._show(TextInputModal(title, placeholder))

    async def ask_credentials(self, title: str, message: str, hint: str = "") -> Optional[Credential]:
        return await self._show(CredentialsModal(title, message, hint))

    async def choose(self, title: str, body: str, options: dict[str, str]) -> Optional[str]:
        return await self._show(ChoiceModal(title, body, options))
