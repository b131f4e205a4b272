"""Async version-control API over the git primitives.

Each blocking git call runs in a worker thread so the host's event loop keeps
running. Failures raise GitCommandError carrying git's own message, which
the retry runner inspects for authentication failures.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from vcsflow.git.branch import get_commit_sha, get_current_branch
from vcsflow.git.commit import checkout, commit, ignore, stage_file, unstage_file
from vcsflow.git.content import read_content
from vcsflow.git.remote import clone, get_remote_url, get_upstream, pull, push
from vcsflow.git.status import get_file_statuses
from vcsflow.git.runner import GitResult
from vcsflow.lib.config import Settings
from vcsflow.lib.errors import GitCommandError
from vcsflow.lib.types import Credential, FileStatus, OperationResult

logger = logging.getLogger(__name__)


def _checked(result: GitResult, what: str) -> OperationResult:
    if not result.success:
        logger.debug(f"[GIT] {what} failed (exit {result.returncode}): {result.message}")
        raise GitCommandError(result.message or f"git {what} failed", result.returncode)
    return OperationResult(code=0, message=result.message)


class GitClient:
    """VcsApi + ContentApi for one local repository."""

    def __init__(self, repo_path: Path, settings: Optional[Settings] = None):
        self.repo_path = repo_path
        self.settings = settings or Settings()

    async def get_status(self) -> list[FileStatus]:
        return await asyncio.to_thread(get_file_statuses, self.repo_path)

    async def add(self, path: str) -> OperationResult:
        result = await asyncio.to_thread(stage_file, self.repo_path, path)
        return _checked(result, f"add {path}")

    async def reset(self, path: str) -> OperationResult:
        result = await asyncio.to_thread(unstage_file, self.repo_path, path)
        return _checked(result, f"reset {path}")

    async def checkout(
        self,
        path: Optional[str] = None,
        branch: Optional[str] = None,
        new_branch: bool = False,
        start_point: Optional[str] = None,
    ) -> OperationResult:
        result = await asyncio.to_thread(
            checkout, self.repo_path, path, branch, new_branch, start_point
        )
        return _checked(result, "checkout")

    async def commit(self, message: str) -> OperationResult:
        result = await asyncio.to_thread(commit, self.repo_path, message)
        return _checked(result, "commit")

    async def push(self, credentials: Optional[Credential] = None) -> OperationResult:
        # A branch without upstream gets one on the default remote
        upstream = await asyncio.to_thread(get_upstream, self.repo_path)
        target_branch = None
        target_remote = None
        if upstream is None:
            target_branch = await self.current_branch()
            target_remote = self.settings.default_remote if target_branch else None
        result = await asyncio.to_thread(
            push, self.repo_path, credentials, target_remote, target_branch,
            self.settings.remote_timeout,
        )
        return _checked(result, "push")

    async def pull(self, credentials: Optional[Credential] = None) -> OperationResult:
        result = await asyncio.to_thread(
            pull, self.repo_path, credentials, self.settings.remote_timeout
        )
        return _checked(result, "pull")

    async def clone(self, path: str, url: str, credentials: Optional[Credential] = None) -> OperationResult:
        result = await asyncio.to_thread(
            clone, Path(path), url, credentials, self.settings.remote_timeout
        )
        return _checked(result, "clone")

    async def ignore(self, path: str, use_extension: bool) -> OperationResult:
        pattern = await asyncio.to_thread(ignore, self.repo_path, path, use_extension)
        return OperationResult(code=0, message=f"Added {pattern} to .gitignore")

    async def current_branch(self) -> Optional[str]:
        return await asyncio.to_thread(get_current_branch, self.repo_path)

    async def top_commit(self) -> Optional[str]:
        return await asyncio.to_thread(get_commit_sha, self.repo_path, "HEAD")

    async def remote_url(self) -> Optional[str]:
        return await asyncio.to_thread(get_remote_url, self.repo_path, self.settings.default_remote)

    async def fetch_content(self, filename: str, reference: str, repo_root: str) -> str:
        result = await asyncio.to_thread(read_content, Path(repo_root), filename, reference)
        if not result.success:
            raise GitCommandError(result.message or f"Cannot read {filename} at {reference}", result.returncode)
        return result.stdout
