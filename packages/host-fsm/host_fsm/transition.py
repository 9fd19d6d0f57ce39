"""Transition value object and the bounded transition history."""
from __future__ import annotations

import dataclasses
from collections import deque
from itertools import islice
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterator, Mapping

if TYPE_CHECKING:
    from host_fsm.machine import StateMachine
    from host_fsm.state import State

DEFAULT_HISTORY_SIZE = 10


@dataclasses.dataclass(frozen=True, slots=True)
class Transition:
    """A move from one state to another. Passed to every hook of one attempt.

    The machine populates ``to_state`` and ``from_state`` when it builds the
    transition, before any hook runs; the instance is frozen afterwards.
    ``params`` is copied and exposed read-only.
    """

    machine: StateMachine | None = dataclasses.field(default=None, repr=False)
    to_state: State | None = None
    from_state: State | None = None
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        params = {} if self.params is None else dict(self.params)
        object.__setattr__(self, "params", MappingProxyType(params))

    @property
    def to_name(self) -> str | None:
        return self.to_state.name if self.to_state is not None else None

    @property
    def from_name(self) -> str | None:
        return self.from_state.name if self.from_state is not None else None

    @property
    def is_self_transition(self) -> bool:
        return self.to_state is not None and self.to_state is self.from_state

    def snapshot(self) -> Transition:
        """Independent copy suitable for recording in a history."""
        return dataclasses.replace(self)


class TransitionHistory:
    """Most-recent-first log of committed transitions, optionally bounded.

    ``maximum_size`` of None or 0 means unbounded.
    """

    def __init__(self, maximum_size: int | None = DEFAULT_HISTORY_SIZE) -> None:
        self._maximum_size = _check_size(maximum_size)
        self._entries: deque[Transition] = deque(maxlen=self._maximum_size)

    @property
    def maximum_size(self) -> int | None:
        return self._maximum_size

    @maximum_size.setter
    def maximum_size(self, value: int | None) -> None:
        size = _check_size(value)
        # Keep the newest entries that still fit.
        kept = self._entries if size is None else islice(self._entries, size)
        self._entries = deque(kept, maxlen=size)
        self._maximum_size = size

    def append(self, transition: Transition) -> None:
        """Record *transition* as the newest entry, evicting the oldest past the cap."""
        self._entries.appendleft(transition)

    def count(self) -> int:
        return len(self._entries)

    def latest(self) -> Transition | None:
        return self._entries[0] if self._entries else None

    def to_list(self) -> list[Transition]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transition]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"TransitionHistory(count={len(self._entries)}, maximum_size={self._maximum_size})"


def _check_size(value: int | None) -> int | None:
    if value is None or value == 0:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"History size must be an int or None, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"History size must be >= 0, got {value}")
    return value
