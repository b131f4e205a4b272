"""Git remote operations.

Credentials are handed to git through a one-shot credential helper that
reads them from the child's environment, so they never appear on a command
line. Terminal prompts are disabled: a remote that wants credentials fails
fast with "could not read Username" instead of hanging.
"""

from pathlib import Path
from typing import Optional

from vcsflow.git.runner import run_git, GitResult
from vcsflow.lib.types import Credential

USERNAME_VAR = "VCSFLOW_GIT_USERNAME"
PASSWORD_VAR = "VCSFLOW_GIT_PASSWORD"

_HELPER = (
    "credential.helper=!f() { "
    f'echo "username=${USERNAME_VAR}"; echo "password=${PASSWORD_VAR}"; '
    "}; f"
)


def credential_options(credentials: Optional[Credential]) -> tuple[dict[str, str], list[str]]:
    """Build (env, config) for a remote call."""
    env = {"GIT_TERMINAL_PROMPT": "0"}
    if credentials is None:
        return env, []
    env[USERNAME_VAR] = credentials.username
    env[PASSWORD_VAR] = credentials.password.get_secret_value()
    # Empty helper first resets any configured helpers for this call
    return env, ["credential.helper=", _HELPER]


def push(worktree: Path, credentials: Optional[Credential] = None,
         remote: Optional[str] = None, branch: Optional[str] = None,
         timeout: int = 120) -> GitResult:
    """Push to remote. With remote and branch, also set upstream."""
    args = ["push"]
    if remote and branch:
        args += ["-u", remote, branch]
    env, config = credential_options(credentials)
    return run_git(args, worktree, timeout=timeout, env=env, config=config)


def pull(worktree: Path, credentials: Optional[Credential] = None, timeout: int = 120) -> GitResult:
    """Pull from the tracked upstream."""
    env, config = credential_options(credentials)
    return run_git(["pull", "--no-edit"], worktree, timeout=timeout, env=env, config=config)


def clone(parent: Path, url: str, credentials: Optional[Credential] = None,
          timeout: int = 120) -> GitResult:
    """Clone url into a new directory under parent."""
    env, config = credential_options(credentials)
    return run_git(["clone", url], parent, timeout=timeout, env=env, config=config)


def get_remote_url(repo: Path, remote: str = "origin") -> str | None:
    """Configured URL of a remote, or None."""
    result = run_git(["remote", "get-url", remote], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def get_upstream(worktree: Path) -> str | None:
    """Upstream of the current branch (e.g. "origin/main"), or None."""
    result = run_git(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], worktree)
    if result.success:
        return result.stdout.strip() or None
    return None
