"""Channels through which running tasks report start and termination outcomes."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class StartNotifier:
    """Reports once whether a task started successfully or failed to start.

    The callback receives ``None`` on success and the error on failure.
    """

    def __init__(self, callback: Callable[[BaseException | None], Any]) -> None:
        self._callback = callback
        self._used = False

    @classmethod
    def from_future(cls, future: asyncio.Future) -> "StartNotifier":
        """Create a notifier that resolves ``future`` with the start outcome.

        Success sets the future's result to ``None``; failure sets the error
        as the future's exception. A future that is already done (for example
        cancelled because nobody waits any longer) is left untouched.
        """

        def resolve(err: BaseException | None) -> None:
            if future.done():
                return
            if err is None:
                future.set_result(None)
            else:
                future.set_exception(err)

        return cls(resolve)

    @property
    def used(self) -> bool:
        """Whether an outcome has already been reported."""
        return self._used

    def _report(self, err: BaseException | None) -> None:
        if self._used:
            raise RuntimeError("start outcome has already been reported")
        self._used = True
        self._callback(err)

    def success(self) -> None:
        """Report a successful start."""
        self._report(None)

    def failed(self, err: BaseException) -> None:
        """Report a failed start."""
        self._report(err)


class TerminationNotifier(Generic[T]):
    """Reports task terminations to a supervisor through an asyncio queue.

    Successful results are put on the queue as they are; errors are put on
    the queue as exception instances. All holders of one notifier share its
    state, so skipping notifications affects every task that reports to it.
    """

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue
        self._skip = False
        self._closed = False

    @property
    def queue(self) -> asyncio.Queue:
        """The queue the supervisor listens on."""
        return self._queue

    @property
    def closed(self) -> bool:
        """Whether the listening side has stopped receiving notifications."""
        return self._closed

    @property
    def skipping(self) -> bool:
        """Whether successful terminations are currently not reported."""
        return self._skip

    def close(self) -> None:
        """Mark the listening side as gone; later reports are not delivered."""
        self._closed = True

    async def report_err(self, err: BaseException) -> None:
        """Deliver ``err`` to the listener, or raise it if nobody listens."""
        if self._closed:
            raise err
        await self._queue.put(err)

    async def report_ok(self, result: T) -> bool:
        """Deliver ``result`` to the listener.

        Returns ``False`` without delivering when the listener is closed or
        notifications are being skipped; the caller then keeps the result.
        """
        if self._closed or self._skip:
            return False
        await self._queue.put(result)
        return True

    def skip_notifications(self) -> None:
        """Stop delivering successful terminations."""
        self._skip = True

    def resume_notifications(self) -> None:
        """Resume delivering successful terminations."""
        self._skip = False