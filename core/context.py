"""
core/context.py -- Per-call context: trace id, deadline, and cancellation.

Every UserDirectory operation takes a CallContext as its first argument. The
context is explicit (passed, never stored in module state) so concurrent calls
cannot observe each other's deadlines.

Deadlines use time.monotonic() so wall-clock adjustments cannot extend or cut
short a call. cancel() is backed by a threading.Event and may be invoked from
another thread while the call is in flight; the operation notices at its next
check() and aborts with Cancelled.

Layer rule: core/ is the kernel. No imports from auth/, directory/, or admin/.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field

from core.config import get_settings


class Cancelled(Exception):
    """The caller cancelled the operation before it completed."""


class DeadlineExceeded(Cancelled):
    """The caller's deadline passed before the operation completed."""


@dataclass
class CallContext:
    """Caller-supplied scope for a single directory operation.

    Usage:
        ctx = CallContext.with_timeout(2.0)
        user = directory.get_by_id(ctx, claims, user_id)
    """

    trace_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    deadline: float | None = None  # time.monotonic() value; None = no deadline
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def background(cls, trace_id: str | None = None) -> CallContext:
        """A context with no deadline. Still cancellable."""
        if trace_id is None:
            return cls()
        return cls(trace_id=trace_id)

    @classmethod
    def with_timeout(cls, seconds: float | None = None, trace_id: str | None = None) -> CallContext:
        """A context that expires `seconds` from now (default: Settings.operation_timeout_seconds)."""
        if seconds is None:
            seconds = get_settings().operation_timeout_seconds
        ctx = cls.background(trace_id)
        ctx.deadline = time.monotonic() + seconds
        return ctx

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, floored at 0. None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise Cancelled or DeadlineExceeded if the call must not proceed."""
        if self._cancel_event.is_set():
            raise Cancelled(f"call {self.trace_id} was cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceeded(f"call {self.trace_id} exceeded its deadline")
