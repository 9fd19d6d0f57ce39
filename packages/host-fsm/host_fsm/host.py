"""StatefulMixin - explicit composition of state machines into a host object."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from host_fsm.machine import StateMachine
from host_fsm.state import State
from host_fsm.types import MISSING, UnresolvedMemberError

logger = logging.getLogger(__name__)

# Host members that resolve() never reports as the host's own.
_FORWARDING_MEMBERS = frozenset({
    "attach_state_machine",
    "detach_state_machine",
    "state_machine",
    "state_machines",
    "is_in",
    "transition",
    "get_state",
    "resolve",
    "get",
    "has",
    "invoke",
})


class StatefulMixin:
    """Gives a host named state machines and forwards to them explicitly.

    ``is_in``, ``transition`` and ``get_state`` go to the primary machine,
    the first one attached. ``resolve`` looks at the host's own public
    members first, then asks each attached machine in attach order, which in
    turn asks its current state.
    """

    @property
    def state_machines(self) -> Mapping[str, StateMachine]:
        return dict(self._machines())

    def _machines(self) -> dict[str, StateMachine]:
        machines = self.__dict__.get("_state_machines")
        if machines is None:
            machines = {}
            self.__dict__["_state_machines"] = machines
        return machines

    def attach_state_machine(self, name: str, machine: StateMachine) -> StateMachine:
        machines = self._machines()
        if name in machines:
            raise ValueError(f"A state machine named {name!r} is already attached")
        machine.attach(self)
        machines[name] = machine
        logger.debug(f"Attached state machine {name!r} to {type(self).__name__}")
        return machine

    def detach_state_machine(self, name: str) -> StateMachine:
        machine = self._machines().pop(name)
        machine.detach()
        logger.debug(f"Detached state machine {name!r} from {type(self).__name__}")
        return machine

    def state_machine(self, name: str | None = None) -> StateMachine:
        """Return the machine attached as *name*, or the primary one.

        Raises KeyError if there is no such machine.
        """
        machines = self._machines()
        if name is not None:
            return machines[name]
        for machine in machines.values():
            return machine
        raise KeyError(f"{type(self).__name__} has no state machine attached")

    # --- Forwarding to the primary machine ---

    def is_in(self, name: str) -> bool:
        return self.state_machine().is_in(name)

    def transition(self, target_name: str, params: Mapping[str, Any] | None = None) -> bool:
        return self.state_machine().transition(target_name, params)

    def get_state(self, name: str | None = None) -> State | None:
        return self.state_machine().get_state(name)

    # --- Delegation ---

    def resolve(self, name: str) -> Any:
        """Own public member, else the first attached machine that resolves *name*."""
        if name and not name.startswith("_") and name not in _FORWARDING_MEMBERS:
            value = getattr(self, name, MISSING)
            if value is not MISSING:
                return value
        for machine in self._machines().values():
            value = machine.resolve(name)
            if value is not MISSING:
                return value
        return MISSING

    def get(self, name: str, default: Any = None) -> Any:
        value = self.resolve(name)
        return default if value is MISSING else value

    def has(self, name: str) -> bool:
        return self.resolve(name) is not MISSING

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        member = self.resolve(name)
        if member is MISSING or not callable(member):
            raise UnresolvedMemberError(name)
        return member(*args, **kwargs)
