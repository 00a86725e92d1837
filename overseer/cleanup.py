"""Resource cleanup callbacks for supervision trees."""

from __future__ import annotations

from typing import Callable


class CleanupFn:
    """Runs a cleanup callback at most once; errors propagate as raised."""

    def __init__(self, cleanup_fn: Callable[[], object]) -> None:
        self._cleanup_fn = cleanup_fn
        self._called = False

    @classmethod
    def empty(cls) -> "CleanupFn":
        """A cleanup that does nothing and always succeeds."""
        return cls(lambda: None)

    @property
    def called(self) -> bool:
        """Whether the cleanup has already been run."""
        return self._called

    def __call__(self) -> None:
        if self._called:
            raise RuntimeError("cleanup has already been run")
        self._called = True
        self._cleanup_fn()