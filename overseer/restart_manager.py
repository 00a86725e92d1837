"""Restart tolerance bookkeeping for supervisors."""

from __future__ import annotations

import time
from typing import Callable


class TooManyRestarts(Exception):
    """Raised when a supervisor restarted more often than it tolerates."""

    def __init__(
        self,
        supervisor_name: str,
        first_error: BaseException,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__("to many restarts detected")
        self.supervisor_name = supervisor_name
        self.first_error = first_error
        # None when the first error of the window was also the last one.
        self.last_error = last_error

    @property
    def runtime_name(self) -> str:
        """The runtime name of the supervisor that gave up."""
        return self.supervisor_name

    def __str__(self) -> str:
        return "to many restarts detected"


class RestartManager:
    """Counts errors inside a sliding time window.

    ``restart_window`` is in seconds, measured with ``clock``.
    """

    def __init__(
        self,
        supervisor_name: str,
        max_allowed_restarts: int,
        restart_window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.supervisor_name = supervisor_name
        self.max_allowed_restarts = max_allowed_restarts
        self.restart_window = restart_window
        self._clock = clock
        self._window_first_error: BaseException | None = None
        self._window_start: float | None = None
        self.restart_count = 0

    def register_error(self, err: BaseException) -> None:
        """Record an error; raise TooManyRestarts once tolerance is exceeded."""
        first_err_for_window = (
            self._window_start is None
            or self._clock() - self._window_start > self.restart_window
        )

        if first_err_for_window and self.max_allowed_restarts == 0:
            raise TooManyRestarts(self.supervisor_name, err, None)

        last_error = None
        if first_err_for_window:
            self._window_first_error = err
            self._window_start = self._clock()
            self.restart_count = 1
        else:
            self.restart_count += 1
            last_error = err

        if self.restart_count > self.max_allowed_restarts:
            raise TooManyRestarts(
                self.supervisor_name, self._window_first_error, last_error
            )