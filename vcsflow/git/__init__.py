"""Git operations for vcsflow.

This module provides clean interfaces for git operations.

Return type conventions:
- Functions returning GitResult: Caller must check .success before using output.
  Examples: stage_file(), commit(), push(), clone()
- Functions returning parsed values (str, list): Return empty/None on failure.
  Examples: get_file_statuses() -> [], get_current_branch() -> None
- GitClient wraps all of them as coroutines that raise GitCommandError instead.
"""

from vcsflow.git.runner import GitResult, run_git
from vcsflow.git.status import (
    categorize,
    parse_porcelain_z,
    get_binary_paths,
    get_file_statuses,
)
from vcsflow.git.branch import (
    get_current_branch,
    get_commit_sha,
)
from vcsflow.git.commit import (
    stage_file,
    unstage_file,
    checkout,
    commit,
    ignore,
)
from vcsflow.git.remote import (
    push,
    pull,
    clone,
    get_remote_url,
    get_upstream,
)
from vcsflow.git.content import read_content
from vcsflow.git.client import GitClient

__all__ = [
    # runner
    "GitResult",
    "run_git",
    # status
    "categorize",
    "parse_porcelain_z",
    "get_binary_paths",
    "get_file_statuses",
    # branch
    "get_current_branch",
    "get_commit_sha",
    # commit
    "stage_file",
    "unstage_file",
    "checkout",
    "commit",
    "ignore",
    # remote
    "push",
    "pull",
    "clone",
    "get_remote_url",
    "get_upstream",
    # content
    "read_content",
    # client
    "GitClient",
]
