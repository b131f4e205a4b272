"""Where HEAD points: branch name and commit."""

from pathlib import Path

from vcsflow.git.runner import run_git


def get_current_branch(worktree: Path) -> str | None:
    """Branch HEAD is on, or None when detached.

    Works on an unborn branch (fresh repository with no commits) too.
    """
    result = run_git(["symbolic-ref", "--quiet", "--short", "HEAD"], worktree)
    if not result.success:
        return None
    return result.stdout.strip() or None


def get_commit_sha(worktree: Path, ref: str = "HEAD") -> str | None:
    """Full SHA a ref resolves to, or None (e.g. HEAD before the first commit)."""
    result = run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], worktree)
    if not result.success:
        return None
    return result.stdout.strip() or None
