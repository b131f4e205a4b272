"""
Shared data types for vcsflow.

This module contains dataclasses used across the engine modules to avoid
circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, SecretStr


class StatusCategory(str, Enum):
    """Where a changed file sits relative to the index."""
    UNTRACKED = "untracked"
    UNSTAGED = "unstaged"
    STAGED = "staged"
    PARTIALLY_STAGED = "partially-staged"


class SpecialRef(str, Enum):
    """Symbolic references that are not commits."""
    WORKING = "WORKING"
    INDEX = "INDEX"


@dataclass(frozen=True)
class FileStatus:
    """One entry from a status refresh.

    Immutable; replaced wholesale by the next refresh.
    """
    path: str
    index_code: str  # X column of `git status --porcelain`
    worktree_code: str  # Y column
    category: StatusCategory
    renamed_from: Optional[str] = None
    is_binary: bool = False

    @property
    def is_deleted(self) -> bool:
        return self.index_code == "D" or self.worktree_code == "D"


@dataclass(frozen=True)
class DiffContext:
    """The two references a diff compares (challenger first)."""
    current_ref: str
    previous_ref: str


@dataclass
class OperationResult:
    """Result of a remote operation: git's exit code and message."""
    code: int
    message: str

    @property
    def success(self) -> bool:
        return self.code == 0


class Credential(BaseModel):
    """Username/password pair for a single retried remote call.

    The password is a SecretStr so it never shows up in reprs or logs.
    """
    username: str
    password: SecretStr


@dataclass
class FileDiffArgument:
    """One entry of the diff command's `files` argument."""
    file_path: str
    is_text: bool = True
    status: Optional[StatusCategory] = None
    context: Optional[DiffContext] = None


@dataclass
class ContextActionArgs:
    """Arguments shared by every file context command."""
    files: list[FileStatus] = field(default_factory=list)


@dataclass
class FileDiffArgs:
    """Arguments of the file diff context command."""
    files: list[FileDiffArgument] = field(default_factory=list)
