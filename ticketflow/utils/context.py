"""Cancellation contexts for blocking git calls.

A Context carries an optional deadline and a cancellation flag. Contexts form
a tree: a child observes its parent's cancellation and deadline, while
cancelling a child leaves the parent untouched.

Example:
    with Context.background().with_timeout(5) as ctx:
        service.list_worktrees(ctx)
"""

import threading
import time
from typing import Optional


class ContextError(Exception):
    """Base class for the reasons a context is done."""
    pass


class Cancelled(ContextError):
    """The context was cancelled explicitly."""

    def __init__(self):
        super().__init__("context canceled")


class DeadlineExceeded(ContextError):
    """The context's deadline passed."""

    def __init__(self):
        super().__init__("context deadline exceeded")


class Context:
    """Cancellation token with an optional monotonic deadline."""

    def __init__(self, parent: Optional["Context"] = None, deadline: Optional[float] = None):
        self._parent = parent
        self._lock = threading.Lock()
        self._err: Optional[ContextError] = None

        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline

    @classmethod
    def background(cls) -> "Context":
        """Return a context that is never cancelled and has no deadline."""
        return cls()

    def with_cancel(self) -> "Context":
        """Derive a child context that can be cancelled independently."""
        return Context(parent=self)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child context that expires after the given number of seconds."""
        return Context(parent=self, deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        """Deadline on the time.monotonic() clock, or None."""
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this context and its descendants. Safe to call repeatedly."""
        with self._lock:
            if self._err is None:
                self._err = Cancelled()

    def err(self) -> Optional[ContextError]:
        """Return why the context is done, or None while it is still live."""
        with self._lock:
            if self._err is not None:
                return self._err

            if self._parent is not None:
                parent_err = self._parent.err()
                if parent_err is not None:
                    self._err = parent_err
                    return self._err

            if self._deadline is not None and time.monotonic() >= self._deadline:
                self._err = DeadlineExceeded()
            return self._err

    def done(self) -> bool:
        """True once the context is cancelled or expired."""
        return self.err() is not None

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False
