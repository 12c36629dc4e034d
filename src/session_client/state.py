"""Observable state snapshots shared by the session and the search pipeline."""

import logging
from dataclasses import replace
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class StateContainer(Generic[StateT]):
    """Holds an immutable dataclass snapshot and notifies listeners on change.

    A listener that raises is logged and skipped; it never interrupts the
    state transition that triggered it.
    """

    def __init__(self, initial: StateT):
        self._state = initial
        self._listeners: List[Callable[[StateT], None]] = []

    @property
    def state(self) -> StateT:
        return self._state

    def subscribe(self, listener: Callable[[StateT], None]) -> Callable[[], None]:
        """Register a state listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes) -> None:
        self._state = replace(self._state, **changes)  # type: ignore[type-var]
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning(f"State listener {listener!r} failed: {e}")
