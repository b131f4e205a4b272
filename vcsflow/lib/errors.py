"""
Error taxonomy for vcsflow.

Authentication failures and user cancellation are handled inside the
retry runner and the publish workflow. Everything else is logged and
surfaced as a notice at the command surface.
"""

from dataclasses import dataclass


class VcsflowError(Exception):
    """Base class for errors raised by vcsflow."""


class GitCommandError(VcsflowError):
    """A version-control call failed.

    The message is git's own output so callers can classify it
    (see workflow.auth_retry.is_auth_error).
    """

    def __init__(self, message: str, code: int = 1):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthenticationError(GitCommandError):
    """The remote rejected (or never received) credentials."""


class HardRemoteError(GitCommandError):
    """Any remote failure that is not an authentication failure."""


class UserCancelled(VcsflowError):
    """A prompt was declined. A normal terminal path, not a fault."""


class UnsupportedContentType(VcsflowError):
    """No diff renderer can display this file."""

    def __init__(self, filename: str, extension: str):
        self.filename = filename
        self.extension = extension
        super().__init__(f"Diff is not supported for {extension or 'extensionless'} files.")


class ConfigError(VcsflowError):
    """Settings file missing a value or holding an invalid one."""


@dataclass
class WorkflowStageFailure(VcsflowError):
    """A publish stage failed.

    Raised inside the publish run and converted into a `failed`
    outcome at its boundary; never seen by callers.
    """
    stage: str
    reason: str
    detail: str = ""

    def __str__(self):
        return f"[{self.stage}] {self.reason}" + (f": {self.detail}" if self.detail else "")
