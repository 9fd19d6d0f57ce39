"""Ordered observer lists for machine-level transition hooks."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from host_fsm.transition import Transition

TransitionObserver = Callable[["Transition"], None]


class TransitionObservers:

    def __init__(self) -> None:
        self._observers: list[TransitionObserver] = []

    def subscribe(self, observer: TransitionObserver) -> TransitionObserver:
        self._observers.append(observer)
        return observer

    def unsubscribe(self, observer: TransitionObserver) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    def notify(self, transition: Transition) -> None:
        """Call every observer in registration order."""
        for observer in list(self._observers):
            observer(transition)

    def __len__(self) -> int:
        return len(self._observers)
