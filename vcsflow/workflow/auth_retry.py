"""Remote operations that may need credentials.

A failed clone/pull/push whose message looks like an authentication
failure prompts the user for credentials and tries again with them.
Anything else is re-raised straight away. Retries are gated by the user
answering each prompt, not by a counter; RetryPolicy makes that explicit
and is where a cap goes if one is ever wanted.

Usage:
    runner = AuthRetryOperationRunner(vcs, prompter)
    result = await runner.run(Operation.PUSH)
    print(result.message)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from vcsflow.lib.config import Settings
from vcsflow.lib.constants import (
    AUTH_ERROR_MESSAGES,
    UNKNOWN_OPERATION_CODE,
    UNKNOWN_OPERATION_MESSAGE,
)
from vcsflow.lib.interfaces import Prompter, VcsApi
from vcsflow.lib.types import Credential, OperationResult

logger = logging.getLogger(__name__)

CREDENTIALS_TITLE = "Git credentials required"
CREDENTIALS_MESSAGE = "Enter credentials for remote repository"
RETRY_HINT = "Incorrect username or password."


class Operation(str, Enum):
    """Git operations requiring authentication."""
    CLONE = "clone"
    PULL = "pull"
    PUSH = "push"


@dataclass(frozen=True)
class CloneArgs:
    path: str  # directory to clone into
    url: str


@dataclass(frozen=True)
class RetryPolicy:
    """How many credential prompts one operation may go through.

    The default never stops asking on its own: each retry is explicitly
    requested by the user submitting credentials.
    """
    no_max_retries: bool = True
    max_retries: Optional[int] = None

    def allows(self, retry_count: int) -> bool:
        if self.no_max_retries or self.max_retries is None:
            return True
        return retry_count < self.max_retries

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        if settings.max_auth_retries is None:
            return cls()
        return cls(no_max_retries=False, max_retries=settings.max_auth_retries)


@dataclass
class OperationAttempt:
    operation: Any
    args: Any = None
    retry_count: int = 0  # credential prompts answered so far


def is_auth_error(error: BaseException, messages: tuple[str, ...] = AUTH_ERROR_MESSAGES) -> bool:
    """True if the error's message contains a known authentication failure."""
    text = str(error)
    return any(m in text for m in messages)


class AuthRetryOperationRunner:
    """Run clone/pull/push, asking for credentials on authentication failures."""

    def __init__(
        self,
        vcs: VcsApi,
        prompter: Prompter,
        policy: Optional[RetryPolicy] = None,
        auth_messages: tuple[str, ...] = AUTH_ERROR_MESSAGES,
    ):
        self.vcs = vcs
        self.prompter = prompter
        self.policy = policy or RetryPolicy()
        self.auth_messages = auth_messages

    def is_auth_error(self, error: BaseException) -> bool:
        return is_auth_error(error, self.auth_messages)

    async def run(
        self,
        operation,
        args: Any = None,
        credentials: Optional[Credential] = None,
    ) -> OperationResult:
        """
        Run the operation, retrying with fresh credentials while the user
        keeps providing them.

        Returns:
            OperationResult with git's message. Unknown operations return a
            code -1 sentinel result instead of raising.

        Raises:
            The operation's own error when it isn't an authentication
            failure, when the user declines the credential prompt, or when
            the retry policy is exhausted.
        """
        attempt = OperationAttempt(operation=operation, args=args)

        while True:
            try:
                return await self._dispatch(operation, args, credentials)
            except Exception as error:
                if not self.is_auth_error(error):
                    raise

                if not self.policy.allows(attempt.retry_count):
                    logger.warning(
                        f"[AUTH] {_name(operation)}: giving up after {attempt.retry_count} credential prompt(s)"
                    )
                    raise

                logger.info(f"[AUTH] {_name(operation)} needs credentials (prompt {attempt.retry_count + 1})")
                credentials = await self.prompter.ask_credentials(
                    CREDENTIALS_TITLE,
                    CREDENTIALS_MESSAGE,
                    RETRY_HINT if attempt.retry_count > 0 else "",
                )
                if credentials is None:
                    logger.info(f"[AUTH] {_name(operation)}: credentials declined")
                    raise

                attempt.retry_count += 1

    async def _dispatch(self, operation, args: Any, credentials: Optional[Credential]) -> OperationResult:
        try:
            kind = Operation(operation)
        except ValueError:
            logger.warning(f"[AUTH] Unknown operation: {operation!r}")
            return OperationResult(code=UNKNOWN_OPERATION_CODE, message=UNKNOWN_OPERATION_MESSAGE)

        if kind == Operation.CLONE:
            return await self.vcs.clone(args.path, args.url, credentials)
        if kind == Operation.PULL:
            return await self.vcs.pull(credentials)
        return await self.vcs.push(credentials)


def _name(operation) -> str:
    return operation.value if isinstance(operation, Operation) else str(operation)
