"""Read file content at a reference."""

from pathlib import Path

from vcsflow.git.runner import run_git, GitResult
from vcsflow.lib.types import SpecialRef

# git show messages for a path that doesn't exist at the requested ref
_MISSING_MARKERS = ("does not exist in", "exists on disk, but not in", "not in the index")


def read_content(repo: Path, filename: str, reference: str) -> GitResult:
    """
    Content of filename at reference.

    WORKING reads the file from disk, INDEX reads the staged blob, anything
    else is resolved by `git show <ref>:<path>`. A file that doesn't exist on
    that side of the comparison (new or deleted) yields empty content.
    """
    if reference == SpecialRef.WORKING.value:
        path = repo / filename
        if not path.exists():
            return GitResult(returncode=0, stdout="", stderr="")
        try:
            return GitResult(returncode=0, stdout=path.read_text(), stderr="")
        except UnicodeDecodeError:
            return GitResult(returncode=1, stdout="", stderr=f"{filename} is not a text file")

    spec = f":{filename}" if reference == SpecialRef.INDEX.value else f"{reference}:{filename}"
    result = run_git(["show", spec], repo)
    if not result.success and any(m in result.stderr for m in _MISSING_MARKERS):
        return GitResult(returncode=0, stdout="", stderr="")
    return result
