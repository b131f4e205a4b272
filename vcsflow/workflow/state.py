"""Publish workflow states.

WorkflowState gives the FSM's state strings an enum for type safety;
transition logic lives in fsm.py.
"""

from enum import Enum


class WorkflowState(Enum):
    """All publish workflow states.

    Values match FSM state strings.
    """

    IDLE = "idle"
    RESTARTING = "restarting"
    AWAITING_KERNEL_READY = "awaiting_kernel_ready"
    CONFIRM_PUBLISH = "confirm_publish"
    SAVING = "saving"
    RESOLVING_BRANCH = "resolving_branch"
    ADDING = "adding"
    COMMITTING = "committing"
    PUSHING = "pushing"
    RESOLVING_LINK = "resolving_link"

    # Terminal states
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = frozenset({
    WorkflowState.COMPLETE,
    WorkflowState.CANCELLED,
    WorkflowState.FAILED,
})


class InvalidTransition(Exception):
    """Raised when attempting an invalid state transition."""

    def __init__(self, from_state: str, to_state: WorkflowState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state.value}")
