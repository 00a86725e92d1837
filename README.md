# overseer

Building blocks for running supervised asyncio tasks. With `overseer`, a
routine can report when it has started. A parent can hear how its children
ended, through a queue. A count of failures inside a time window decides when
to give up. Cleanup callbacks run at most once.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Modules

### `overseer.task`

- **`TaskSpec(routine)`**: a template for a task. `routine` is called as
  `routine(ctx, notifier)` with a `TaskContext` and a `StartNotifier`, and must
  return an awaitable. The defaults are: wait for start-up indefinitely, wait
  for shut-down indefinitely, and restart `Restart.PERMANENT`. To change them,
  call `with_startup(Startup)`, `with_shutdown(Shutdown)` and
  `with_restart(Restart)`. Each of these returns the spec.
- **`await spec.start(parent_ctx, parent_chan=None)`**: spawns the routine and
  waits until it reports its start. Then it returns a `RunningTask`. If the
  start does not succeed, it cancels the routine and raises one of these
  errors:
  - `BusinessLogicFailed`, when the routine called `notifier.failed(err)`;
  - `StartTimeoutError`, when the start-up timeout passed first;
  - `StartRecvError`, when the routine finished without reporting.

  A spec can be started again after it has run or after a start has failed.
- **`RunningTask`**:
  - `await terminate()` cancels the task's context and waits for the outcome.
  - `await wait()` waits for the task to end on its own.

  Both return the routine's result or raise a `TerminationMessage`:
  - `TaskFailed`, when the routine raised. Its `err` attribute holds the
    error.
  - `TaskAborted`, when the routine was cancelled.
  - `TaskForcedKilled`, when a shut-down timeout is set and it passed. The
    routine is then cancelled.
  - `TaskPanic`, for any other crash.
  - `TaskFailureNotified`, when the outcome went to `parent_chan` instead.

  The `restart` property gives the spec's restart policy.

### `overseer.task_types`

- **`TaskContext(parent=None)`**: a cancellation scope.
  - `cancel()` cancels the context and every context derived from it.
  - `await done()` waits until the context is cancelled.
  - `cancelled` tells whether it already is.

  A context created from a cancelled parent starts out cancelled.
- **`Startup` / `Shutdown`**: frozen dataclasses with a `timeout` in seconds,
  where `None` means indefinitely. They are built with `indefinitely()` or
  `after(seconds)`. A negative timeout raises `ValueError`.
- **`Restart`**: `PERMANENT`, `TRANSIENT` or `TEMPORARY`.
- **`StartError`** (`StartTimeoutError`, `StartRecvError`,
  `BusinessLogicFailed`) and **`TerminationMessage`** (`TaskForcedKilled`,
  `TaskAborted`, `TaskFailed`, `TaskPanic`, `TaskFailureNotified`): the
  exception hierarchies described above.

### `overseer.notifier`

- **`StartNotifier(callback)`**: reports the start outcome once, through
  `success()` or `failed(err)`. A second report raises `RuntimeError`.
  `StartNotifier.from_future(future)` resolves an asyncio future with the
  outcome.
- **`TerminationNotifier(queue)`**: how tasks report to a listener.
  - `report_ok(result)` puts a result on the queue and returns `True`. It
    returns `False` without delivering when the notifier is closed or
    notifications are skipped.
  - `report_err(err)` puts the exception on the queue, or raises it when the
    notifier is closed.
  - `close()` marks the listening side as gone.
  - `skip_notifications()` and `resume_notifications()` switch off and on the
    delivery of successful results.

  When a task started with a `parent_chan` ends, its outcome goes onto that
  queue. If it was delivered, `terminate()`/`wait()` raise
  `TaskFailureNotified`.

### `overseer.restart_manager`

- **`RestartManager(supervisor_name, max_allowed_restarts, restart_window, clock=time.monotonic)`**:
  `register_error(err)` counts errors inside a window of `restart_window`
  seconds that begins at the first error. It raises `TooManyRestarts` once the
  count exceeds `max_allowed_restarts`. With a tolerance of `0`, the first
  error raises at once. Once the window has passed, the count starts again
  from one. The current count is in `restart_count`.
- **`TooManyRestarts`**: its message is `"to many restarts detected"`. It
  carries `supervisor_name` (also `runtime_name`) and `first_error`. It also
  carries `last_error`, which is `None` when the first error of the window was
  the only one.

### `overseer.cleanup`

- **`CleanupFn(cleanup_fn)`**: calling it runs `cleanup_fn` once. Errors
  propagate. A second call raises `RuntimeError`. `CleanupFn.empty()` does
  nothing.

## Example

```python
import asyncio

from overseer.task import TaskSpec
from overseer.task_types import Shutdown, TaskContext


async def worker(ctx, notify):
    notify.success()          # tell the caller we are up
    await ctx.done()          # run until asked to stop
    return "finished"


async def main():
    spec = TaskSpec(worker).with_shutdown(Shutdown.after(1.0))
    running = await spec.start(TaskContext())
    print(await running.terminate())   # finished


asyncio.run(main())
```

## Restart tolerance

```python
from overseer.restart_manager import RestartManager, TooManyRestarts

manager = RestartManager("/root", 2, 5.0)
manager.register_error(RuntimeError("error 1"))
manager.register_error(RuntimeError("error 2"))
try:
    manager.register_error(RuntimeError("error 3"))
except TooManyRestarts as exc:
    print(exc, exc.first_error, exc.last_error)
```

## What this package does not do

`overseer` provides the pieces and nothing above them. It has no supervisor
that builds a tree of workers, and none that applies one-for-one or
one-for-all restart strategies. It emits no lifecycle events. It has no
command-line tool. To supervise children, combine `TaskSpec`,
`TerminationNotifier`, `RestartManager` and `CleanupFn` in your own code.