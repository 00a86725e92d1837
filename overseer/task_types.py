"""Value types shared by task specifications and running tasks."""

from __future__ import annotations

import asyncio
import enum
import weakref
from dataclasses import dataclass


class TaskContext:
    """A cancellation scope handed to task routines.

    Cancelling a context cancels every context derived from it. A context
    created from an already cancelled parent starts out cancelled.
    """

    def __init__(self, parent: TaskContext | None = None) -> None:
        self._event = asyncio.Event()
        self._children: weakref.WeakSet[TaskContext] = weakref.WeakSet()
        self.parent = parent
        if parent is not None:
            parent._children.add(self)
            if parent.cancelled:
                self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether this context has been cancelled."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel this context and all contexts derived from it."""
        if self._event.is_set():
            return
        self._event.set()
        for child in list(self._children):
            child.cancel()

    async def done(self) -> None:
        """Wait until this context is cancelled."""
        await self._event.wait()


def _check_timeout(timeout: float | None) -> None:
    if timeout is not None and timeout < 0:
        raise ValueError("timeout must not be negative")


@dataclass(frozen=True)
class Shutdown:
    """How long a supervisor waits for a task to stop before killing it.

    ``timeout`` is in seconds; ``None`` means wait indefinitely.
    """

    timeout: float | None = None

    def __post_init__(self) -> None:
        _check_timeout(self.timeout)

    @classmethod
    def indefinitely(cls) -> Shutdown:
        """Wait for the task to stop for as long as it takes."""
        return cls(None)

    @classmethod
    def after(cls, seconds: float) -> Shutdown:
        """Force-kill the task if it has not stopped after ``seconds``."""
        return cls(seconds)

    @property
    def is_indefinite(self) -> bool:
        return self.timeout is None


@dataclass(frozen=True)
class Startup:
    """How long a supervisor waits for a task to report its start.

    ``timeout`` is in seconds; ``None`` means wait indefinitely.
    """

    timeout: float | None = None

    def __post_init__(self) -> None:
        _check_timeout(self.timeout)

    @classmethod
    def indefinitely(cls) -> Startup:
        """Wait for the start report for as long as it takes."""
        return cls(None)

    @classmethod
    def after(cls, seconds: float) -> Startup:
        """Give up on the start if it is not reported within ``seconds``."""
        return cls(seconds)

    @property
    def is_indefinite(self) -> bool:
        return self.timeout is None


class Restart(enum.Enum):
    """Whether a supervisor restarts a task once it terminates."""

    #: Restart whenever the task terminates, with an error or not.
    PERMANENT = "permanent"
    #: Restart only when the task terminates with an error.
    TRANSIENT = "transient"
    #: Never restart the task.
    TEMPORARY = "temporary"


class StartError(Exception):
    """A task could not be started."""


class StartTimeoutError(StartError):
    """The task did not report its start within the startup timeout."""

    def __init__(self) -> None:
        super().__init__("task took to long to get started")


class StartRecvError(StartError):
    """The task finished without reporting a start success or failure."""

    def __init__(self) -> None:
        super().__init__("task routine did not notify start success or failure")


class BusinessLogicFailed(StartError):
    """The task reported a start failure through its start notifier."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(f"worker start failed: {err}")
        self.err = err


class TerminationMessage(Exception):
    """Describes an abnormal termination of a running task."""


class TaskForcedKilled(TerminationMessage):
    """The task ignored its shutdown signal and was killed after the timeout."""

    def __init__(self) -> None:
        super().__init__("task was hard killed after timeout")


class TaskAborted(TerminationMessage):
    """The task was cancelled."""

    def __init__(self) -> None:
        super().__init__("task was aborted")


class TaskFailed(TerminationMessage):
    """The task routine raised an error."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(f"task runtime failed: {err}")
        self.err = err


class TaskPanic(TerminationMessage):
    """The task crashed in an unexpected way."""

    def __init__(self) -> None:
        super().__init__("task panicked at runtime")


class TaskFailureNotified(TerminationMessage):
    """The termination was already delivered to the supervising listener."""

    def __init__(self) -> None:
        super().__init__("should never see this error message")