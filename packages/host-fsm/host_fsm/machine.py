"""StateMachine - state registry, guarded transition protocol, and delegation."""
from __future__ import annotations

import logging
import threading
import weakref
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from host_fsm.hooks import TransitionObserver, TransitionObservers
from host_fsm.state import State
from host_fsm.transition import DEFAULT_HISTORY_SIZE, Transition, TransitionHistory
from host_fsm.types import MISSING, DuplicateStateError, UnknownStateError, UnresolvedMemberError

logger = logging.getLogger(__name__)


class StateMachine:
    """Owns a set of named states and mediates transitions between them.

    At most one state is current. Transitions run the guard hooks of the
    current and target states before committing, then the after hooks and
    the machine-level observers. Members the machine does not declare are
    reached through ``resolve``/``get``/``invoke``, which forward to the
    current state.

    All public operations run under a re-entrant lock owned by the machine.
    A hook may call ``transition`` on its own machine; the nested transition
    commits before the outer one runs its remaining after hooks. History is
    ordered by completion of the protocol, not by commit: the nested entry is
    recorded first, so the outer one ends up newest.
    """

    def __init__(
        self,
        states: Iterable[State] | None = None,
        *,
        default_state_name: str | None = None,
        enable_transition_history: bool = False,
        maximum_transition_history_size: int | None = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._lock = threading.RLock()
        self._states: dict[str, State] = {}
        self._current_state_name: str | None = None
        self._default_state_name: str | None = None
        self._enable_transition_history = bool(enable_transition_history)
        self._history = TransitionHistory(maximum_transition_history_size)
        self._before_observers = TransitionObservers()
        self._after_observers = TransitionObservers()
        self._owner_ref: weakref.ref[Any] | None = None

        if states is not None:
            self.set_states(states)
        if default_state_name is not None:
            self.default_state_name = default_state_name

    # --- Registry ---

    @property
    def states(self) -> Mapping[str, State]:
        """Read-only live view of registered states, in insertion order."""
        return MappingProxyType(self._states)

    def add_state(self, state: State) -> None:
        """Register *state* and re-home its back-reference to this machine."""
        with self._lock:
            self._check_state(state)
            if state.name in self._states:
                raise DuplicateStateError(state.name)
            state._bind(self)
            self._states[state.name] = state
        logger.debug(f"Added state {state.name!r}")

    def remove_state(self, name: str) -> State:
        """Unregister and return the state called *name*.

        Removing the current state leaves the machine without one.
        """
        with self._lock:
            state = self._states.pop(name, None)
            if state is None:
                raise UnknownStateError(name)
            state._bind(None)
            if self._current_state_name == name:
                self._current_state_name = None
                logger.debug(f"Removed current state {name!r}; machine has no current state")
            else:
                logger.debug(f"Removed state {name!r}")
            return state

    def set_states(self, states: Iterable[State]) -> None:
        """Replace every registered state. Fails as a whole on duplicate names."""
        incoming = list(states)
        replacement: dict[str, State] = {}
        with self._lock:
            for state in incoming:
                self._check_state(state)
                if state.name in replacement:
                    raise DuplicateStateError(state.name)
                replacement[state.name] = state

            keep = {id(s) for s in incoming}
            for old in self._states.values():
                if id(old) not in keep:
                    old._bind(None)
            for state in incoming:
                state._bind(self)
            self._states = replacement

            if self._current_state_name not in replacement:
                self._current_state_name = None
        logger.debug(f"Replaced states with {list(replacement)}")

    def _check_state(self, state: State) -> None:
        if not isinstance(state, State):
            raise TypeError(f"Expected a State, got {type(state).__name__}")
        owner = state.machine
        if owner is not None and owner is not self and owner._states.get(state.name) is state:
            raise ValueError(
                f"State {state.name!r} is registered on another machine; remove it there first"
            )

    # --- Current state ---

    @property
    def default_state_name(self) -> str | None:
        """Setting a default while no state is current activates it right away."""
        return self._default_state_name

    @default_state_name.setter
    def default_state_name(self, name: str | None) -> None:
        with self._lock:
            self._default_state_name = name
            self._ensure_current()

    @property
    def current_state_name(self) -> str | None:
        with self._lock:
            self._ensure_current()
            return self._current_state_name

    @property
    def current_state(self) -> State | None:
        with self._lock:
            return self._ensure_current()

    def _ensure_current(self) -> State | None:
        """Activate the default state if nothing is current. No hooks run."""
        if self._current_state_name is None:
            default = self._default_state_name
            if default is None or default not in self._states:
                return None
            self._current_state_name = default
            logger.debug(f"Activated default state {default!r}")
        return self._states[self._current_state_name]

    def is_in(self, name: str) -> bool:
        """True iff the current state is called exactly *name*."""
        with self._lock:
            current = self._ensure_current()
            return current is not None and current.name == name

    def get_state(self, name: str | None = None) -> State | None:
        """Return the state called *name*, or the current state. None if unresolved."""
        with self._lock:
            if name is None:
                return self._ensure_current()
            return self._states.get(name)

    # --- Transition protocol ---

    def transition(self, target_name: str, params: Mapping[str, Any] | None = None) -> bool:
        """Move to the state called *target_name*.

        Returns False when a guard hook vetoes, leaving everything unchanged.
        Raises UnknownStateError if the target is not registered. Exceptions
        from hooks propagate; one raised by an after hook leaves the commit in
        place with no history entry.
        """
        with self._lock:
            # 1. Resolve target
            target = self._states.get(target_name)
            if target is None:
                raise UnknownStateError(target_name)

            # 2. Ensure current; a self-transition runs the full protocol
            current = self._ensure_current()

            transition = Transition(
                machine=self, to_state=target, from_state=current, params=params,
            )
            self.before_transition(transition)

            # 3. Guards, exit first
            if current is not None and not current.before_exit(transition):
                logger.debug(f"Transition {current.name!r} -> {target.name!r} vetoed by before_exit")
                return False
            if not target.before_enter(transition):
                logger.debug(
                    f"Transition {transition.from_name!r} -> {target.name!r} vetoed by before_enter"
                )
                return False

            # 4. Commit
            self._current_state_name = target.name
            logger.debug(f"Transitioned {transition.from_name!r} -> {target.name!r}")

            # 5. After hooks
            if current is not None:
                current.after_exit(transition)
            target.after_enter(transition)
            self.after_transition(transition)

            # 6. History
            if self._enable_transition_history:
                self._record(transition)
            return True

    def _record(self, transition: Transition) -> None:
        size = self._history.maximum_size
        if size is not None and len(self._history) >= size:
            logger.debug(f"Transition history full ({size}); evicting oldest entry")
        self._history.append(transition.snapshot())

    # --- Observation ---

    def before_transition(self, transition: Transition) -> None:
        """Called before the guards run. Observation only, cannot veto."""
        self._before_observers.notify(transition)

    def after_transition(self, transition: Transition) -> None:
        """Called after the commit and the state after hooks."""
        self._after_observers.notify(transition)

    def on_before_transition(self, observer: TransitionObserver) -> TransitionObserver:
        return self._before_observers.subscribe(observer)

    def on_after_transition(self, observer: TransitionObserver) -> TransitionObserver:
        return self._after_observers.subscribe(observer)

    def off_before_transition(self, observer: TransitionObserver) -> None:
        self._before_observers.unsubscribe(observer)

    def off_after_transition(self, observer: TransitionObserver) -> None:
        self._after_observers.unsubscribe(observer)

    # --- History ---

    @property
    def enable_transition_history(self) -> bool:
        return self._enable_transition_history

    @enable_transition_history.setter
    def enable_transition_history(self, enabled: bool) -> None:
        self._enable_transition_history = bool(enabled)

    @property
    def maximum_transition_history_size(self) -> int | None:
        return self._history.maximum_size

    @maximum_transition_history_size.setter
    def maximum_transition_history_size(self, size: int | None) -> None:
        with self._lock:
            self._history.maximum_size = size

    @property
    def history(self) -> TransitionHistory:
        return self._history

    def get_transition_history(self) -> TransitionHistory:
        return self._history

    # --- Delegation ---

    def resolve(self, name: str) -> Any:
        """Forward to the current state. MISSING if there is none or it lacks *name*."""
        with self._lock:
            state = self._ensure_current()
            if state is None:
                return MISSING
            return state.resolve(name)

    def get(self, name: str, default: Any = None) -> Any:
        value = self.resolve(name)
        return default if value is MISSING else value

    def has(self, name: str) -> bool:
        return self.resolve(name) is not MISSING

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call the current state's method *name*."""
        member = self.resolve(name)
        if member is MISSING or not callable(member):
            raise UnresolvedMemberError(name)
        return member(*args, **kwargs)

    # --- Attachment ---

    @property
    def owner(self) -> Any:
        """Host object this machine is attached to, or None."""
        if self._owner_ref is None:
            return None
        return self._owner_ref()

    def attach(self, owner: Any) -> None:
        with self._lock:
            current = self.owner
            if current is not None and current is not owner:
                raise ValueError(f"{self!r} is already attached to {current!r}")
            self._owner_ref = weakref.ref(owner)
        self.attached(owner)

    def detach(self) -> None:
        with self._lock:
            owner = self.owner
            self._owner_ref = None
        if owner is not None:
            self.detached(owner)

    def attached(self, owner: Any) -> None:
        """Lifecycle callback after the machine is bound to *owner*."""

    def detached(self, owner: Any) -> None:
        """Lifecycle callback after the machine is unbound from *owner*."""

    # --- Diagnostics ---

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._states))

    def __getitem__(self, name: str) -> State:
        try:
            return self._states[name]
        except KeyError:
            raise UnknownStateError(name) from None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(states={list(self._states)}, "
            f"current={self._current_state_name!r})"
        )
