"""State - a named unit of behaviour owned by a state machine."""
from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

from host_fsm.types import MISSING

if TYPE_CHECKING:
    from host_fsm.machine import StateMachine
    from host_fsm.transition import Transition

# Members that belong to the state protocol and are never surfaced by resolve().
_PROTOCOL_MEMBERS = frozenset({
    "name",
    "machine",
    "resolve",
    "before_enter",
    "after_enter",
    "before_exit",
    "after_exit",
})


class State:
    """A named state with lifecycle hooks and arbitrary state-scoped members.

    Subclasses expose data as attributes and behaviour as methods; the owning
    machine surfaces them through ``resolve`` while the state is current.

    The back-reference to the machine is weak: the machine owns its states,
    never the other way round.
    """

    def __init__(self, name: str, machine: StateMachine | None = None) -> None:
        if not isinstance(name, str):
            raise TypeError(f"State name must be a str, got {type(name).__name__}")
        if not name:
            raise ValueError("State name must not be empty")
        self._name = name
        self._machine_ref: weakref.ref[StateMachine] | None = None
        if machine is not None:
            self._bind(machine)

    @property
    def name(self) -> str:
        return self._name

    @property
    def machine(self) -> StateMachine | None:
        """Owning machine, or None if unbound or already collected."""
        if self._machine_ref is None:
            return None
        return self._machine_ref()

    def _bind(self, machine: StateMachine | None) -> None:
        self._machine_ref = weakref.ref(machine) if machine is not None else None

    # --- Lifecycle hooks ---

    def before_enter(self, transition: Transition) -> bool:
        """Return False to veto entering this state."""
        return True

    def after_enter(self, transition: Transition) -> None:
        pass

    def before_exit(self, transition: Transition) -> bool:
        """Return False to veto leaving this state."""
        return True

    def after_exit(self, transition: Transition) -> None:
        pass

    # --- Delegation ---

    def resolve(self, name: str) -> Any:
        """Return the public member called *name*, or MISSING."""
        if not name or name.startswith("_") or name in _PROTOCOL_MEMBERS:
            return MISSING
        return getattr(self, name, MISSING)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"
