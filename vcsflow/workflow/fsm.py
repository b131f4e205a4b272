"""Publish workflow state machine using transitions library.

The publish pipeline is a straight line of stages; cancel and fail are
reachable from every non-terminal stage. Terminal states accept nothing.

Usage:
    from vcsflow.workflow.fsm import PublishFSM
    from vcsflow.workflow.state import WorkflowState

    fsm = PublishFSM()
    fsm.start()  # idle -> restarting
    fsm.advance(WorkflowState.AWAITING_KERNEL_READY)
    fsm.cancel()
"""

import logging
from typing import Callable

from transitions import Machine, MachineError

from vcsflow.workflow.state import TERMINAL_STATES, InvalidTransition, WorkflowState

logger = logging.getLogger(__name__)


STATES = [s.value for s in WorkflowState]

# (trigger, source, dest) in pipeline order
PIPELINE = [
    ("start", "idle", "restarting"),
    ("restart_requested", "restarting", "awaiting_kernel_ready"),
    ("kernel_ready", "awaiting_kernel_ready", "confirm_publish"),
    ("publish_confirmed", "confirm_publish", "saving"),
    ("saved", "saving", "resolving_branch"),
    ("branch_resolved", "resolving_branch", "adding"),
    ("added", "adding", "committing"),
    ("committed", "committing", "pushing"),
    ("pushed", "pushing", "resolving_link"),
    ("link_resolved", "resolving_link", "complete"),
]

NON_TERMINAL = [s.value for s in WorkflowState if s not in TERMINAL_STATES]

TRANSITIONS = [
    {"trigger": trigger, "source": source, "dest": dest}
    for trigger, source, dest in PIPELINE
] + [
    {"trigger": "cancel", "source": NON_TERMINAL, "dest": "cancelled"},
    {"trigger": "fail", "source": NON_TERMINAL, "dest": "failed"},
]


def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
        for source in sources:
            lookup.setdefault((source, t["dest"]), t["trigger"])
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class PublishFSM:
    """State machine for one publish run.

    Logs every transition and keeps the visited states in `history`.
    """

    def __init__(self, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            on_transition: Optional callback(from_state, to_state, trigger) called after transitions
        """
        self.on_transition = on_transition
        self.history: list[str] = ["idle"]

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] publish: {from_state} -> {to_state} ({trigger})")
        self.history.append(to_state)

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    @property
    def current(self) -> WorkflowState:
        return WorkflowState(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.current in TERMINAL_STATES

    def advance(self, to_state: WorkflowState) -> None:
        """Move to `to_state` through the trigger that connects it.

        Raises:
            InvalidTransition: If no trigger leads there from the current state
        """
        trigger = TRIGGER_FOR.get((self.state, to_state.value))
        if trigger is None:
            raise InvalidTransition(self.state, to_state)
        try:
            getattr(self, trigger)()
        except MachineError as e:
            raise InvalidTransition(self.state, to_state) from e
