import asyncio

import pytest

from overseer.notifier import TerminationNotifier
from overseer.task import RunningTask, TaskSpec
from overseer.task_types import (
    BusinessLogicFailed,
    Restart,
    Shutdown,
    StartRecvError,
    StartTimeoutError,
    Startup,
    TaskAborted,
    TaskContext,
    TaskFailed,
    TaskFailureNotified,
    TaskForcedKilled,
)


def _closed_chan():
    chan = TerminationNotifier(asyncio.Queue())
    chan.close()
    return chan


def _open_chan():
    return TerminationNotifier(asyncio.Queue())


async def _wait_done_routine(ctx, notify):
    notify.success()
    await ctx.done()
    return None


@pytest.mark.asyncio
async def test_task_start_ok():
    spec = TaskSpec(_wait_done_routine)
    running = await spec.start(TaskContext(), _closed_chan())
    assert isinstance(running, RunningTask)
    assert await running.terminate() is None


@pytest.mark.asyncio
async def test_task_start_with_notify_failed_routine():
    async def routine(ctx, notify):
        notify.failed(RuntimeError("task start failure"))
        return None

    spec = TaskSpec(routine)
    with pytest.raises(BusinessLogicFailed) as info:
        await spec.start(TaskContext(), _closed_chan())
    assert str(info.value.err) == "task start failure"
    assert str(info.value) == "worker start failed: task start failure"


@pytest.mark.asyncio
async def test_task_start_timeout_err():
    cancelled = asyncio.Event()

    async def routine(ctx, notify):
        try:
            await ctx.done()
        except asyncio.CancelledError:
            cancelled.set()
            raise
        notify.success()

    spec = TaskSpec(routine).with_startup(Startup.after(0.05))
    with pytest.raises(StartTimeoutError) as info:
        await spec.start(TaskContext(), _closed_chan())
    assert str(info.value) == "task took to long to get started"
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_task_start_recv_err():
    async def routine(ctx, notify):
        return None

    spec = TaskSpec(routine)
    with pytest.raises(StartRecvError) as info:
        await spec.start(TaskContext(), _closed_chan())
    assert str(info.value) == "task routine did not notify start success or failure"


@pytest.mark.asyncio
async def test_task_start_recv_err_when_routine_raises_before_notifying():
    async def routine(ctx, notify):
        raise ValueError("boom")

    spec = TaskSpec(routine)
    with pytest.raises(StartRecvError):
        await spec.start(TaskContext(), None)


@pytest.mark.asyncio
async def test_task_termination_kill():
    async def routine(ctx, notify):
        inner_ctx = TaskContext()
        notify.success()
        await inner_ctx.done()
        await ctx.done()

    chan = _open_chan()
    spec = TaskSpec(routine).with_shutdown(Shutdown.after(0.05))
    running = await spec.start(TaskContext(), chan)
    with pytest.raises(TaskForcedKilled) as info:
        await running.terminate()
    assert str(info.value) == "task was hard killed after timeout"

    reported = await asyncio.wait_for(chan.queue.get(), 1)
    assert isinstance(reported, TaskAborted)


@pytest.mark.asyncio
async def test_task_termination_with_no_error():
    async def routine(ctx, notify):
        notify.success()
        await ctx.done()
        return "finished"

    spec = TaskSpec(routine).with_shutdown(Shutdown.after(1))
    running = await spec.start(TaskContext(), _closed_chan())
    assert await running.terminate() == "finished"


@pytest.mark.asyncio
async def test_task_termination_with_error():
    async def routine(ctx, notify):
        notify.success()
        await ctx.done()
        raise RuntimeError("some failure")

    chan = _open_chan()
    spec = TaskSpec(routine).with_shutdown(Shutdown.after(1))
    running = await spec.start(TaskContext(), chan)

    with pytest.raises(TaskFailureNotified):
        await running.terminate()

    reported = await asyncio.wait_for(chan.queue.get(), 1)
    assert isinstance(reported, TaskFailed)
    assert str(reported) == "task runtime failed: some failure"


@pytest.mark.asyncio
async def test_double_start_ok():
    spec = TaskSpec(_wait_done_routine)
    ctx = TaskContext()

    first = await spec.start(ctx, _closed_chan())
    assert await first.terminate() is None
    assert first.spec is spec

    second = await first.spec.start(ctx, _closed_chan())
    assert await second.terminate() is None


@pytest.mark.asyncio
async def test_ok_result_is_reported_to_open_channel():
    async def routine(ctx, notify):
        notify.success()
        await ctx.done()
        return "worker-name"

    chan = _open_chan()
    running = await TaskSpec(routine).start(TaskContext(), chan)
    with pytest.raises(TaskFailureNotified):
        await running.terminate()
    assert chan.queue.get_nowait() == "worker-name"


@pytest.mark.asyncio
async def test_skipped_notifications_return_result():
    async def routine(ctx, notify):
        notify.success()
        await ctx.done()
        return 42

    chan = _open_chan()
    chan.skip_notifications()
    running = await TaskSpec(routine).start(TaskContext(), chan)
    assert await running.terminate() == 42
    assert chan.queue.empty()


@pytest.mark.asyncio
async def test_failure_without_parent_chan_raises_task_failed():
    async def routine(ctx, notify):
        notify.success()
        await ctx.done()
        raise KeyError("missing")

    running = await TaskSpec(routine).start(TaskContext(), None)
    with pytest.raises(TaskFailed) as info:
        await running.terminate()
    assert isinstance(info.value.err, KeyError)


@pytest.mark.asyncio
async def test_wait_returns_when_routine_ends_on_its_own():
    release = asyncio.Event()

    async def routine(ctx, notify):
        notify.success()
        await release.wait()
        return "done"

    running = await TaskSpec(routine).start(TaskContext(), None)
    release.set()
    assert await running.wait() == "done"


@pytest.mark.asyncio
async def test_parent_context_cancellation_stops_task():
    parent = TaskContext()
    running = await TaskSpec(_wait_done_routine).start(parent, None)
    parent.cancel()
    assert await asyncio.wait_for(running.wait(), 1) is None


@pytest.mark.asyncio
async def test_restart_policy_defaults_and_override():
    spec = TaskSpec(_wait_done_routine)
    assert spec.restart is Restart.PERMANENT
    assert spec.startup.is_indefinite
    assert spec.shutdown.is_indefinite

    assert spec.with_restart(Restart.TRANSIENT) is spec
    running = await spec.start(TaskContext(), None)
    assert running.restart is Restart.TRANSIENT
    assert await running.terminate() is None