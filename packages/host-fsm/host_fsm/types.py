"""Shared sentinel and error types for host-fsm."""
from __future__ import annotations

from typing import Final


class _Missing:
    """Sentinel type for an unresolved delegated member."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class StateMachineError(Exception):
    """Base class for structural misuse of a state machine."""


class UnknownStateError(StateMachineError, KeyError):
    """Raised when a state name is not registered on the machine."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"Unknown state {name!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateStateError(StateMachineError, ValueError):
    """Raised when registering a state whose name is already taken."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"State {name!r} is already registered")


class UnresolvedMemberError(StateMachineError, AttributeError):
    """Raised when invoking a delegated member that does not resolve to a callable."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"No callable member {name!r}")
        self.name = name
