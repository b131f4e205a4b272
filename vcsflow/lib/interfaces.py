"""
Contracts for the collaborators the engine drives.

The host shell (or the console host in vcsflow.host) supplies concrete
implementations. Every call that can suspend is a coroutine.
"""

from typing import Optional, Protocol

from vcsflow.lib.signals import Signal
from vcsflow.lib.types import Credential, FileStatus, OperationResult


class VcsApi(Protocol):
    """Version-control commands. Each raises GitCommandError on failure."""

    async def get_status(self) -> list[FileStatus]: ...

    async def add(self, path: str) -> OperationResult: ...

    async def reset(self, path: str) -> OperationResult: ...

    async def checkout(
        self,
        path: Optional[str] = None,
        branch: Optional[str] = None,
        new_branch: bool = False,
        start_point: Optional[str] = None,
    ) -> OperationResult: ...

    async def commit(self, message: str) -> OperationResult: ...

    async def push(self, credentials: Optional[Credential] = None) -> OperationResult: ...

    async def pull(self, credentials: Optional[Credential] = None) -> OperationResult: ...

    async def clone(self, path: str, url: str, credentials: Optional[Credential] = None) -> OperationResult: ...

    async def ignore(self, path: str, use_extension: bool) -> OperationResult: ...

    async def current_branch(self) -> Optional[str]: ...

    async def top_commit(self) -> Optional[str]: ...


class ContentApi(Protocol):
    async def fetch_content(self, filename: str, reference: str, repo_root: str) -> str: ...


class ExecutionEnvironment(Protocol):
    """The thing that re-runs the active document (a notebook kernel upstream)."""

    contents_changed: Signal  # emits (path: str, new_timestamp: float)

    async def restart_and_run_all(self) -> None: ...

    async def is_ready(self) -> bool: ...


class RemoteLinkApi(Protocol):
    async def get_remote_url(self, commit_sha: str, filename: str) -> str: ...


class Prompter(Protocol):
    """Modal prompts. Every method is a cancellation point."""

    async def confirm(self, title: str, body: str, accept_label: str = "Yes",
                      reject_label: str = "Cancel") -> bool: ...

    async def ask_text(self, title: str, placeholder: str = "") -> Optional[str]:
        """Return the entered text, or None if the prompt was dismissed."""
        ...

    async def ask_credentials(self, title: str, message: str, hint: str = "") -> Optional[Credential]: ...

    async def choose(self, title: str, body: str, options: dict[str, str]) -> Optional[str]:
        """Offer labelled options keyed by id; return the chosen id or None."""
        ...


class Document(Protocol):
    path: str

    @property
    def dirty(self) -> bool: ...

    async def save(self) -> None: ...


class DocumentHost(Protocol):
    def current_document(self) -> Optional[Document]: ...

    async def open(self, path: str) -> None: ...

    async def delete(self, path: str) -> None: ...


class ViewHost(Protocol):
    """Main-area view container of the host shell."""

    def find(self, view_id: str): ...

    def add(self, view) -> None: ...

    def activate(self, view_id: str) -> None: ...
