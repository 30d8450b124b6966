"""
directory/instrumentation.py -- Prometheus metrics decorator for any UserDirectory.

InstrumentingDirectory holds a delegate implementing the same operation set and
forwards every call unchanged. Around each call it increments a request counter
and observes one latency sample, labelled by operation and by whether the call
raised. Return values and exceptions are passed through untouched, so it can
sit anywhere in a stack of decorators.

prometheus_client metrics are thread-safe; no extra locking is needed for
concurrent in-flight calls.

Cardinality: labels are the operation name and "true"/"false" only. Never
label with user ids or emails.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

from auth.models import Claims, NewUserRequest, UpdateUserRequest, User
from core.context import CallContext
from directory.service import UserDirectory

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


def new_metrics(registry: CollectorRegistry) -> tuple[Counter, Histogram]:
    """Create the request counter and latency histogram in the given registry."""
    request_count = Counter(
        "identity_directory_requests_total",
        "Number of UserDirectory operations invoked",
        ["method", "error"],
        registry=registry,
    )
    request_latency = Histogram(
        "identity_directory_request_latency_seconds",
        "UserDirectory operation latency (seconds)",
        ["method", "error"],
        buckets=_LATENCY_BUCKETS,
        registry=registry,
    )
    return request_count, request_latency


def render_metrics(registry: CollectorRegistry) -> tuple[bytes, str]:
    """Return the exposition body and content type for a /metrics endpoint."""
    return generate_latest(registry), CONTENT_TYPE_LATEST


class InstrumentingDirectory:
    def __init__(self, delegate: UserDirectory, request_count: Counter, request_latency: Histogram) -> None:
        self.delegate = delegate
        self.request_count = request_count
        self.request_latency = request_latency

    @contextmanager
    def _instrument(self, method: str) -> Iterator[None]:
        started = time.perf_counter()
        failed = True
        try:
            yield
            failed = False
        finally:
            error = "true" if failed else "false"
            self.request_count.labels(method=method, error=error).inc()
            self.request_latency.labels(method=method, error=error).observe(time.perf_counter() - started)

    def create(self, ctx: CallContext, request: NewUserRequest, now: datetime) -> User:
        with self._instrument("create"):
            return self.delegate.create(ctx, request, now)

    def update(
        self, ctx: CallContext, claims: Claims, user_id: str, request: UpdateUserRequest, now: datetime
    ) -> User:
        with self._instrument("update"):
            return self.delegate.update(ctx, claims, user_id, request, now)

    def delete(self, ctx: CallContext, claims: Claims, user_id: str) -> None:
        with self._instrument("delete"):
            return self.delegate.delete(ctx, claims, user_id)

    def get_all(self, ctx: CallContext, page_number: int, rows_per_page: int) -> list[User]:
        with self._instrument("get_all"):
            return self.delegate.get_all(ctx, page_number, rows_per_page)

    def get_by_id(self, ctx: CallContext, claims: Claims, user_id: str) -> User:
        with self._instrument("get_by_id"):
            return self.delegate.get_by_id(ctx, claims, user_id)

    def authenticate(self, ctx: CallContext, now: datetime, email: str, password: str) -> Claims:
        with self._instrument("authenticate"):
            return self.delegate.authenticate(ctx, now, email, password)
