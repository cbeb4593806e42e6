"""
Press-and-hold repeater for increment/decrement buttons.

The action fires once on press, then after an initial delay keeps firing
at a fixed rate until released. Works with any scheduler exposing
`set_timer` / `set_interval` that return handles with `stop()`, which is
what a Textual `App` or widget provides.
"""

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """A pending timer that can be cancelled."""

    def stop(self) -> None: ...


class Scheduler(Protocol):
    """Something that can run callbacks later."""

    def set_timer(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def set_interval(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


class HoldRepeater:
    """
    Cancellable repeating task for a held button.

    Only one hold can be active. `start` always cancels the previous hold
    first, and `stop` is safe to call any number of times (mouse up,
    mouse leave and blur can all arrive for one press).
    """

    def __init__(
        self,
        scheduler: Scheduler,
        initial_delay: float = 0.3,
        repeat_rate: float = 0.1,
    ):
        self._scheduler = scheduler
        self.initial_delay = initial_delay
        self.repeat_rate = repeat_rate
        self._timeout: TimerHandle | None = None
        self._interval: TimerHandle | None = None
        self._action: Callable[[], None] | None = None
        self._generation = 0

    @property
    def active(self) -> bool:
        """Whether a hold is in progress."""
        return self._action is not None

    def start(self, action: Callable[[], None]) -> None:
        """Fire the action now and keep repeating it until `stop`."""
        self.stop()
        self._action = action
        self._generation += 1
        generation = self._generation

        action()
        self._timeout = self._scheduler.set_timer(
            self.initial_delay, lambda: self._begin_repeat(generation)
        )

    def _begin_repeat(self, generation: int) -> None:
        # A timer from a cancelled hold must not start repeating
        if generation != self._generation or self._action is None:
            return
        self._timeout = None
        self._interval = self._scheduler.set_interval(self.repeat_rate, self._action)

    def stop(self) -> None:
        """Cancel any pending delay or repeat."""
        if self._timeout is not None:
            self._timeout.stop()
            self._timeout = None
        if self._interval is not None:
            self._interval.stop()
            self._interval = None
        if self._action is not None:
            logger.debug("Hold released")
        self._action = None
