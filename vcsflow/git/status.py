"""Git status operations."""

from pathlib import Path

from vcsflow.git.runner import run_git
from vcsflow.lib.types import FileStatus, StatusCategory


def categorize(index_code: str, worktree_code: str) -> StatusCategory:
    """Map the two porcelain status columns to a category."""
    if index_code == "?" and worktree_code == "?":
        return StatusCategory.UNTRACKED
    if index_code == " ":
        return StatusCategory.UNSTAGED
    if worktree_code == " ":
        return StatusCategory.STAGED
    return StatusCategory.PARTIALLY_STAGED


def parse_porcelain_z(output: str, binary_paths: frozenset[str] = frozenset()) -> list[FileStatus]:
    """Parse `git status --porcelain -z` output.

    -z format: "XY path\\0" or, for renames and copies, "XY path\\0orig_path\\0"
    (the original path follows the destination). Ignored entries are skipped.
    """
    files = []
    entries = output.split('\0')
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue

        x, y = entry[0], entry[1]
        path = entry[3:]
        renamed_from = None

        if x in ('R', 'C') and i < len(entries):
            renamed_from = entries[i] or None
            i += 1

        if x == '!' and y == '!':
            continue

        files.append(FileStatus(
            path=path,
            index_code=x,
            worktree_code=y,
            category=categorize(x, y),
            renamed_from=renamed_from,
            is_binary=path in binary_paths,
        ))

    return files


def get_binary_paths(worktree: Path) -> frozenset[str]:
    """Paths git treats as binary among tracked changes (numstat shows '-')."""
    paths = set()
    for args in (["diff", "--numstat"], ["diff", "--cached", "--numstat"]):
        result = run_git(args, worktree)
        if not result.success:
            continue
        for line in result.stdout.splitlines():
            parts = line.split('\t', 2)
            if len(parts) == 3 and parts[0] == '-' and parts[1] == '-':
                paths.add(parts[2])
    return frozenset(paths)


def get_file_statuses(worktree: Path) -> list[FileStatus]:
    """Get status of every changed file (staged + unstaged + untracked).

    Returns empty list on git failure (e.g., not a repo).
    """
    result = run_git(["status", "--porcelain", "-z", "-uall"], worktree)
    if not result.success or not result.stdout:
        return []
    return parse_porcelain_z(result.stdout, get_binary_paths(worktree))
