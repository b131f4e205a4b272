"""Git index and worktree operations."""

from pathlib import Path
from typing import Optional

from vcsflow.git.runner import run_git, GitResult


def stage_file(worktree: Path, path: str) -> GitResult:
    """Stage (or start tracking) a file."""
    return run_git(["add", "--", path], worktree)


def unstage_file(worktree: Path, path: str) -> GitResult:
    """Move a file's staged changes back to the worktree."""
    return run_git(["reset", "--", path], worktree)


def checkout(
    worktree: Path,
    path: Optional[str] = None,
    branch: Optional[str] = None,
    new_branch: bool = False,
    start_point: Optional[str] = None,
) -> GitResult:
    """
    Checkout a branch, a file, or create a branch.

    - path only: restore the file from the index (discard worktree changes)
    - branch: switch to it, or create it with new_branch=True
      (from start_point when given). Local changes to path are carried over.
    """
    if branch:
        args = ["checkout"]
        if new_branch:
            args += ["-b", branch]
            if start_point:
                args.append(start_point)
        else:
            args.append(branch)
        return run_git(args, worktree)

    if path:
        return run_git(["checkout", "--", path], worktree)

    return GitResult(returncode=1, stdout="", stderr="Nothing to checkout: no path or branch given")


def commit(worktree: Path, message: str) -> GitResult:
    """Create a commit with the given message."""
    return run_git(["commit", "-m", message], worktree)


def ignore(worktree: Path, path: str, use_extension: bool = False) -> str:
    """Append a path (or its extension as `*.ext`) to .gitignore.

    Returns the pattern written. Patterns already present are not duplicated.
    """
    if use_extension:
        suffix = Path(path).suffix
        pattern = f"*{suffix}" if suffix else path
    else:
        pattern = "/" + path.lstrip("/")

    gitignore = worktree / ".gitignore"
    existing = gitignore.read_text() if gitignore.exists() else ""
    if pattern in existing.splitlines():
        return pattern

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    with open(gitignore, "a") as f:
        f.write(f"{prefix}{pattern}\n")
    return pattern
