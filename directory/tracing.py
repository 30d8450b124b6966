"""
directory/tracing.py -- OpenTelemetry span decorator for any UserDirectory.

Each operation runs inside a span named "directory.<operation>" carrying the
caller's trace id and, where there is one, the target user id. Exceptions are
recorded on the span and mark it ERROR, then propagate unchanged.

With no tracer provider configured, opentelemetry's default tracer is a no-op,
so the decorator costs almost nothing until tracing is switched on.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from opentelemetry import trace

from auth.models import Claims, NewUserRequest, UpdateUserRequest, User
from core.context import CallContext
from directory.service import UserDirectory

_TRACER_NAME = "identity.directory"


class TracingDirectory:
    def __init__(self, delegate: UserDirectory, tracer: trace.Tracer | None = None) -> None:
        self.delegate = delegate
        self.tracer = tracer or trace.get_tracer(_TRACER_NAME)

    @contextmanager
    def _span(self, operation: str, ctx: CallContext, **attributes: str | int) -> Iterator[trace.Span]:
        with self.tracer.start_as_current_span(
            f"directory.{operation}", record_exception=True, set_status_on_exception=True
        ) as span:
            span.set_attribute("trace_id", ctx.trace_id)
            for key, value in attributes.items():
                span.set_attribute(key, value)
            yield span

    def create(self, ctx: CallContext, request: NewUserRequest, now: datetime) -> User:
        with self._span("create", ctx):
            return self.delegate.create(ctx, request, now)

    def update(
        self, ctx: CallContext, claims: Claims, user_id: str, request: UpdateUserRequest, now: datetime
    ) -> User:
        with self._span("update", ctx, user_id=user_id):
            return self.delegate.update(ctx, claims, user_id, request, now)

    def delete(self, ctx: CallContext, claims: Claims, user_id: str) -> None:
        with self._span("delete", ctx, user_id=user_id):
            return self.delegate.delete(ctx, claims, user_id)

    def get_all(self, ctx: CallContext, page_number: int, rows_per_page: int) -> list[User]:
        with self._span("get_all", ctx, page_number=page_number, rows_per_page=rows_per_page):
            return self.delegate.get_all(ctx, page_number, rows_per_page)

    def get_by_id(self, ctx: CallContext, claims: Claims, user_id: str) -> User:
        with self._span("get_by_id", ctx, user_id=user_id):
            return self.delegate.get_by_id(ctx, claims, user_id)

    def authenticate(self, ctx: CallContext, now: datetime, email: str, password: str) -> Claims:
        with self._span("authenticate", ctx):
            return self.delegate.authenticate(ctx, now, email, password)
