"""Task specifications and the asyncio tasks that run from them."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from .notifier import StartNotifier, TerminationNotifier
from .task_types import (
    BusinessLogicFailed,
    Restart,
    Shutdown,
    StartError,
    StartRecvError,
    StartTimeoutError,
    Startup,
    TaskAborted,
    TaskContext,
    TaskFailed,
    TaskFailureNotified,
    TaskForcedKilled,
    TaskPanic,
    TerminationMessage,
)

Routine = Callable[[TaskContext, StartNotifier], Awaitable[Any]]


def _consume_outcome(task: asyncio.Task) -> None:
    # Mark a finished task's exception as retrieved so asyncio stays quiet.
    if not task.cancelled():
        task.exception()


async def _watch(inner: asyncio.Task, parent_chan: TerminationNotifier | None) -> Any:
    """Wait for the routine and translate its outcome for the supervisor."""
    try:
        await asyncio.wait({inner})
    except asyncio.CancelledError:
        inner.cancel()
        raise

    if inner.cancelled():
        failure: TerminationMessage = TaskAborted()
    else:
        exc = inner.exception()
        if exc is None:
            result = inner.result()
            if parent_chan is not None and await parent_chan.report_ok(result):
                raise TaskFailureNotified()
            return result
        failure = TaskFailed(exc)

    if parent_chan is None:
        raise failure
    # Raises the failure itself when nobody listens on the channel.
    await parent_chan.report_err(failure)
    raise TaskFailureNotified()


class TaskSpec:
    """A template from which running tasks are started, and restarted.

    The routine is called with a TaskContext and a StartNotifier and must
    return an awaitable. It reports its start through the notifier; its
    return value or raised error is the task's termination outcome.
    """

    def __init__(self, routine: Routine) -> None:
        self.routine = routine
        self.startup = Startup.indefinitely()
        self.shutdown = Shutdown.indefinitely()
        self.restart = Restart.PERMANENT

    def with_shutdown(self, shutdown: Shutdown) -> TaskSpec:
        """Set how long termination may take before the task is killed."""
        self.shutdown = shutdown
        return self

    def with_startup(self, startup: Startup) -> TaskSpec:
        """Set how long the start report may take."""
        self.startup = startup
        return self

    def with_restart(self, restart: Restart) -> TaskSpec:
        """Set when a supervisor restarts this task."""
        self.restart = restart
        return self

    async def _invoke(self, ctx: TaskContext, notifier: StartNotifier) -> Any:
        return await self.routine(ctx, notifier)

    async def _await_start(self, start_future: asyncio.Future, inner: asyncio.Task) -> None:
        await asyncio.wait(
            {start_future, inner},
            timeout=self.startup.timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if start_future.done():
            err = start_future.exception()
            if err is not None:
                raise BusinessLogicFailed(err) from err
            return
        if inner.done():
            raise StartRecvError()
        raise StartTimeoutError()

    async def start(
        self,
        parent_ctx: TaskContext | None,
        parent_chan: TerminationNotifier | None = None,
    ) -> RunningTask:
        """Spawn the routine and wait until it reports its start.

        Raises a StartError subclass when the start fails, times out, or the
        routine finishes without reporting; the spawned routine is then
        cancelled. The spec can be started again afterwards.
        """
        loop = asyncio.get_running_loop()
        start_future: asyncio.Future = loop.create_future()
        notifier = StartNotifier.from_future(start_future)
        ctx = TaskContext(parent_ctx)

        inner = asyncio.create_task(self._invoke(ctx, notifier))
        inner.add_done_callback(_consume_outcome)
        outer = asyncio.create_task(_watch(inner, parent_chan))
        outer.add_done_callback(_consume_outcome)

        try:
            await self._await_start(start_future, inner)
        except BaseException:
            # Reports arriving after this point are ignored.
            start_future.cancel()
            outer.cancel()
            await asyncio.wait({outer})
            raise
        return RunningTask(self, ctx, inner, outer)


class RunningTask:
    """A task started from a TaskSpec."""

    def __init__(
        self,
        spec: TaskSpec,
        ctx: TaskContext,
        inner: asyncio.Task,
        outer: asyncio.Task,
    ) -> None:
        self.spec = spec
        self._ctx = ctx
        self._inner = inner
        self._outer = outer

    @property
    def restart(self) -> Restart:
        """The restart policy of the spec this task runs from."""
        return self.spec.restart

    async def terminate(self) -> Any:
        """Signal the task to stop and wait for its outcome.

        Returns the routine's result, or raises a TerminationMessage.
        """
        self._ctx.cancel()
        return await self._finish()

    async def wait(self) -> Any:
        """Wait for the task to end on its own and return its outcome."""
        return await self._finish()

    async def _finish(self) -> Any:
        timeout = self.spec.shutdown.timeout
        if timeout is not None:
            done, _ = await asyncio.wait({self._outer}, timeout=timeout)
            if not done:
                self._inner.cancel()
                raise TaskForcedKilled()
        return await self._join()

    async def _join(self) -> Any:
        await asyncio.wait({self._outer})
        if self._outer.cancelled():
            raise TaskAborted()
        exc = self._outer.exception()
        if exc is None:
            return self._outer.result()
        if isinstance(exc, TerminationMessage):
            raise exc
        raise TaskPanic() from exc


__all__ = ["RunningTask", "TaskSpec", "StartError", "TerminationMessage"]