"""host-fsm - Finite state machine engine with guarded, observable transitions."""
from __future__ import annotations

from host_fsm.host import StatefulMixin
from host_fsm.machine import StateMachine
from host_fsm.state import State
from host_fsm.transition import Transition, TransitionHistory
from host_fsm.types import (
    MISSING,
    DuplicateStateError,
    StateMachineError,
    UnknownStateError,
    UnresolvedMemberError,
)

__all__ = [
    "MISSING",
    "DuplicateStateError",
    "State",
    "StateMachine",
    "StateMachineError",
    "StatefulMixin",
    "Transition",
    "TransitionHistory",
    "UnknownStateError",
    "UnresolvedMemberError",
]
