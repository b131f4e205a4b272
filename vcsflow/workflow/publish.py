"""Publish workflow: restart, confirm, save, add, commit, push, link.

WorkflowOrchestrator drives one publish run through PublishFSM. Each
stage is a method; the run loop in `run()` only sequences them. Stage
failures raise WorkflowStageFailure, prompt dismissals raise
UserCancelled, and both are turned into a terminal WorkflowOutcome at
the `run()` boundary. Anything else moves the machine to `failed` and
propagates.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from vcsflow.lib.config import Settings
from vcsflow.lib.context import RepositoryContext
from vcsflow.lib.errors import UserCancelled, VcsflowError, WorkflowStageFailure
from vcsflow.lib.interfaces import (
    Document,
    DocumentHost,
    ExecutionEnvironment,
    Prompter,
    RemoteLinkApi,
    VcsApi,
)
from vcsflow.notifications import Level, Notifier
from vcsflow.workflow.auth_retry import AuthRetryOperationRunner, Operation
from vcsflow.workflow.fsm import PublishFSM
from vcsflow.workflow.state import WorkflowState

logger = logging.getLogger(__name__)

# Errors a stage converts into a failed outcome
STAGE_ERRORS = (VcsflowError, OSError)


class FailureReason(str, Enum):
    NO_DOCUMENT = "no_document"
    RESTART_FAILED = "restart_failed"
    KERNEL_NOT_READY = "kernel_not_ready"
    SAVE_FAILED = "save_failed"
    BRANCH_LOOKUP_FAILED = "branch_lookup_failed"
    SWITCH_BRANCH_UNSUPPORTED = "switch_branch_unsupported"
    MISSING_BRANCH_NAME = "missing_branch_name"
    NEW_BRANCH_FAILED = "new_branch_failed"
    ADD_FAILED = "add_failed"
    EMPTY_MESSAGE = "empty_message"
    USER_CANCELLED = "user_cancelled"
    COMMIT_FAILED = "commit_failed"
    PUSH_FAILED = "push_failed"


STAGE_MESSAGES = {
    WorkflowState.IDLE: "Nothing to publish",
    WorkflowState.RESTARTING: "Failed to restart and run all",
    WorkflowState.AWAITING_KERNEL_READY: "Execution environment did not become ready",
    WorkflowState.SAVING: "Failed to save",
    WorkflowState.RESOLVING_BRANCH: "Failed to resolve branch",
    WorkflowState.ADDING: "Failed to add file",
    WorkflowState.COMMITTING: "Failed to commit",
    WorkflowState.PUSHING: "Failed to push, the commit is kept locally",
}


class BranchChoiceKind(str, Enum):
    ADD_TO_BRANCH = "add_to_branch"
    NEW_BRANCH = "new_branch"
    SWITCH_BRANCH = "switch_branch"
    CANCEL = "cancel"


@dataclass(frozen=True)
class BranchChoice:
    """What the user picked in the branch prompt."""
    kind: BranchChoiceKind
    name: Optional[str] = None  # only for NEW_BRANCH

    @classmethod
    def add_to_branch(cls) -> "BranchChoice":
        return cls(BranchChoiceKind.ADD_TO_BRANCH)

    @classmethod
    def new_branch(cls, name: str) -> "BranchChoice":
        return cls(BranchChoiceKind.NEW_BRANCH, name)

    @classmethod
    def switch_branch(cls) -> "BranchChoice":
        return cls(BranchChoiceKind.SWITCH_BRANCH)

    @classmethod
    def cancel(cls) -> "BranchChoice":
        return cls(BranchChoiceKind.CANCEL)


BRANCH_OPTIONS = {
    BranchChoiceKind.ADD_TO_BRANCH.value: "Yes",
    BranchChoiceKind.NEW_BRANCH.value: "Make New Branch",
    BranchChoiceKind.SWITCH_BRANCH.value: "Change Branch",
}


@dataclass
class WorkflowOutcome:
    state: WorkflowState  # complete, cancelled or failed
    stage: WorkflowState  # stage the run ended in
    reason: Optional[str] = None
    detail: str = ""
    url: Optional[str] = None
    filename: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == WorkflowState.COMPLETE


class WorkflowOrchestrator:
    """Runs the publish pipeline once for the current document."""

    def __init__(
        self,
        repo: RepositoryContext,
        vcs: VcsApi,
        runner: AuthRetryOperationRunner,
        prompter: Prompter,
        documents: DocumentHost,
        environment: ExecutionEnvironment,
        links: RemoteLinkApi,
        notifier: Notifier,
        settings: Optional[Settings] = None,
    ):
        self.repo = repo
        self.vcs = vcs
        self.runner = runner
        self.prompter = prompter
        self.documents = documents
        self.environment = environment
        self.links = links
        self.notifier = notifier
        self.settings = settings or Settings()
        self.fsm = PublishFSM()
        self.outcome: Optional[WorkflowOutcome] = None
        self._filename: Optional[str] = None

    async def run(self) -> WorkflowOutcome:
        """Publish the current document. Returns the terminal outcome."""
        if self.fsm.current != WorkflowState.IDLE:
            raise VcsflowError(f"Publish run already used (state: {self.fsm.state})")

        try:
            document = self._current_document()
            await self._restart()
            await self._await_ready()
            await self._confirm_publish()
            await self._save(document)
            choice = await self._resolve_branch()
            await self._add(choice)
            await self._commit()
            await self._push()
            url = await self._resolve_link()
        except WorkflowStageFailure as e:
            return self._finish_failed(e)
        except UserCancelled as e:
            return self._finish_cancelled(str(e))
        except BaseException:
            if not self.fsm.is_terminal:
                self.fsm.fail()
            raise

        self.notifier.log(f"Published {self._filename}", Level.SUCCESS, details=url or "")
        self.outcome = WorkflowOutcome(
            state=WorkflowState.COMPLETE,
            stage=WorkflowState.COMPLETE,
            url=url,
            filename=self._filename,
        )
        return self.outcome

    # --- stages ---

    def _current_document(self) -> Document:
        document = self.documents.current_document()
        if document is None:
            raise WorkflowStageFailure(
                WorkflowState.IDLE.value, FailureReason.NO_DOCUMENT.value, "no active document"
            )
        self._filename = self.repo.relative_path(document.path)
        return document

    async def _restart(self) -> None:
        self.fsm.advance(WorkflowState.RESTARTING)
        self.notifier.log("Restarting and running all...", Level.RUNNING)
        try:
            await self.environment.restart_and_run_all()
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.RESTART_FAILED, str(e)) from e

    async def _await_ready(self) -> None:
        self.fsm.advance(WorkflowState.AWAITING_KERNEL_READY)
        interval = self.settings.ready_poll_interval
        max_polls = self.settings.ready_max_polls

        for _ in range(max_polls):
            if await self.environment.is_ready():
                return
            await asyncio.sleep(interval)

        raise self._failure(
            FailureReason.KERNEL_NOT_READY,
            f"not ready after {max_polls} checks ({max_polls * interval:g}s)",
        )

    async def _confirm_publish(self) -> None:
        self.fsm.advance(WorkflowState.CONFIRM_PUBLISH)
        ok = await self.prompter.confirm(
            "Restart complete",
            f"Do you wish to publish {self._filename}?",
            accept_label="Yes",
            reject_label="Cancel",
        )
        if not ok:
            raise UserCancelled("publish not confirmed")

    async def _save(self, document: Document) -> None:
        self.fsm.advance(WorkflowState.SAVING)
        if not document.dirty:
            return

        save = await self.prompter.confirm(
            "You have unsaved changes.",
            "Do you want to save before publishing?",
            accept_label="Save",
            reject_label="No, proceed without saving",
        )
        if not save:
            logger.info(f"[PUBLISH] Continuing without saving {self._filename}")
            return

        try:
            await document.save()
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.SAVE_FAILED, str(e)) from e

    async def _resolve_branch(self) -> BranchChoice:
        self.fsm.advance(WorkflowState.RESOLVING_BRANCH)
        try:
            branch = await self.vcs.current_branch()
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.BRANCH_LOOKUP_FAILED, str(e)) from e

        key = await self.prompter.choose(
            "Git Add",
            f"Do you want to add changes from {self._filename} to your current branch?\n\n"
            f"current branch: {branch or '(detached HEAD)'}",
            BRANCH_OPTIONS,
        )
        if key is None:
            return BranchChoice.cancel()

        kind = BranchChoiceKind(key)
        if kind != BranchChoiceKind.NEW_BRANCH:
            return BranchChoice(kind)

        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        name = await self.prompter.ask_text(
            "Please name your new branch",
            placeholder=f"{self.settings.new_branch_prefix}-{stamp}",
        )
        if name is None:
            return BranchChoice.cancel()
        return BranchChoice.new_branch(name.strip())

    async def _add(self, choice: BranchChoice) -> None:
        if choice.kind == BranchChoiceKind.CANCEL:
            raise UserCancelled("branch prompt dismissed")

        self.fsm.advance(WorkflowState.ADDING)

        if choice.kind == BranchChoiceKind.SWITCH_BRANCH:
            logger.warning("[PUBLISH] Switching to an existing branch is not supported")
            raise self._failure(
                FailureReason.SWITCH_BRANCH_UNSUPPORTED,
                "switching to an existing branch is not supported",
            )

        if choice.kind == BranchChoiceKind.NEW_BRANCH:
            if not choice.name:
                raise self._failure(FailureReason.MISSING_BRANCH_NAME, "missing new branch name")
            try:
                await self.vcs.checkout(path=self._filename, branch=choice.name, new_branch=True)
            except STAGE_ERRORS as e:
                raise self._failure(FailureReason.NEW_BRANCH_FAILED, str(e)) from e
            logger.info(f"[PUBLISH] Created branch {choice.name}")

        try:
            await self.vcs.add(self._filename)
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.ADD_FAILED, str(e)) from e

    async def _commit(self) -> None:
        self.fsm.advance(WorkflowState.COMMITTING)
        message = await self.prompter.ask_text(
            "Enter a commit message",
            placeholder="Why is this change necessary? Explain the context",
        )
        if message is None:
            raise self._failure(FailureReason.USER_CANCELLED, "commit message prompt dismissed")
        if not message.strip():
            raise self._failure(FailureReason.EMPTY_MESSAGE, "commit message is empty")

        try:
            await self.vcs.commit(message)
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.COMMIT_FAILED, str(e)) from e

    async def _push(self) -> None:
        self.fsm.advance(WorkflowState.PUSHING)
        try:
            branch = await self.vcs.current_branch()
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.PUSH_FAILED, str(e)) from e

        ok = await self.prompter.confirm(
            "Git Push",
            f"About to push {self._filename} to branch {branch}",
            accept_label="Yes",
            reject_label="Cancel",
        )
        if not ok:
            logger.info("[PUBLISH] Push declined, the commit is kept locally")
            raise UserCancelled("push not confirmed")

        self.notifier.log("Pushing...", Level.RUNNING)
        try:
            result = await self.runner.run(Operation.PUSH)
        except STAGE_ERRORS as e:
            raise self._failure(FailureReason.PUSH_FAILED, str(e)) from e
        if not result.success:
            raise self._failure(FailureReason.PUSH_FAILED, result.message)

    async def _resolve_link(self) -> Optional[str]:
        self.fsm.advance(WorkflowState.RESOLVING_LINK)
        url = None
        try:
            sha = await self.vcs.top_commit()
            if sha:
                url = await self.links.get_remote_url(sha, self._filename)
        except STAGE_ERRORS as e:
            logger.warning(f"[PUBLISH] Could not resolve remote link: {e}")
            self.notifier.log("Pushed, but could not resolve a link", Level.WARNING, error=e)

        self.fsm.advance(WorkflowState.COMPLETE)
        return url

    # --- terminal handling ---

    def _failure(self, reason: FailureReason, detail: str = "") -> WorkflowStageFailure:
        return WorkflowStageFailure(self.fsm.state, reason.value, detail)

    def _finish_failed(self, failure: WorkflowStageFailure) -> WorkflowOutcome:
        stage = WorkflowState(failure.stage)
        message = STAGE_MESSAGES.get(stage, "Publish failed")
        level = Level.WARNING if failure.reason == FailureReason.USER_CANCELLED.value else Level.ERROR
        logger.log(
            logging.WARNING if level == Level.WARNING else logging.ERROR,
            f"[PUBLISH] {failure}",
        )
        self.notifier.log(message, level, details=failure.detail or failure.reason)

        if not self.fsm.is_terminal:
            self.fsm.fail()
        self.outcome = WorkflowOutcome(
            state=WorkflowState.FAILED,
            stage=stage,
            reason=failure.reason,
            detail=failure.detail,
            filename=self._filename,
        )
        return self.outcome

    def _finish_cancelled(self, detail: str) -> WorkflowOutcome:
        stage = self.fsm.current
        logger.info(f"[PUBLISH] Cancelled at {stage.value}: {detail}")
        self.notifier.log("Publish cancelled", Level.INFO, details=detail)

        self.fsm.cancel()
        self.outcome = WorkflowOutcome(
            state=WorkflowState.CANCELLED,
            stage=stage,
            reason=FailureReason.USER_CANCELLED.value,
            detail=detail,
            filename=self._filename,
        )
        return self.outcome
