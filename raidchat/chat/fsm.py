"""Dialogue lifecycle state machine using the transitions library.

Tracks where a chat session is in its single active conversation:

    idle --begin--> active --fill--> active --finish_steps--> complete
    idle --begin_complete--> complete      (classifier pre-filled everything)
    complete --executed--> idle            (gateway returned, success or not)
    active|complete --cancel--> idle

An invalid reply fires no trigger; the conversation stays where it is.

Usage:
    from raidchat.chat.fsm import DialogueFSM

    fsm = DialogueFSM("PROJ")
    fsm.begin()
    fsm.finish_steps()
    fsm.executed()
"""

import logging
from typing import Callable

from transitions import Machine

logger = logging.getLogger(__name__)


STATES = [
    "idle",
    "active",
    "complete",
]

TRANSITIONS = [
    # Starting a conversation
    {"trigger": "begin", "source": "idle", "dest": "active"},
    {"trigger": "begin_complete", "source": "idle", "dest": "complete"},

    # Replies
    {"trigger": "fill", "source": "active", "dest": "active"},
    {"trigger": "finish_steps", "source": "active", "dest": "complete"},

    # Gateway invoked, regardless of outcome
    {"trigger": "executed", "source": "complete", "dest": "idle"},

    # Explicit cancellation, or a new command replacing an unfinished one
    {"trigger": "cancel", "source": "active", "dest": "idle"},
    {"trigger": "cancel", "source": "complete", "dest": "idle"},
]


class DialogueFSM:
    """State machine for one session's conversation lifecycle.

    Wraps transitions.Machine with session-specific logging and an optional
    observer callback.
    """

    def __init__(self, session_id: str, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            session_id: Label used in log lines (usually the project key)
            on_transition: Optional callback(from_state, to_state, trigger)
        """
        self.session_id = session_id
        self.on_transition = on_transition

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

        logger.debug(f"[FSM] {self.session_id}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)

    @property
    def has_conversation(self) -> bool:
        return self.state != "idle"
