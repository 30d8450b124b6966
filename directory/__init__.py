"""directory/ -- The UserDirectory service and the decorators layered onto it.

Layer rule: directory/ imports from auth/ and core/. Nothing in auth/ or core/
imports from directory/.

new_directory() is the production assembly: the basic service wrapped in
tracing, wrapped in metrics. Build the stack by hand for a different order.
"""

from __future__ import annotations

from opentelemetry import trace
from prometheus_client import CollectorRegistry

from auth.claims import ClaimsIssuer
from auth.credentials import CredentialManager
from core.config import Settings, get_settings
from directory.instrumentation import InstrumentingDirectory, new_metrics
from directory.service import BasicUserDirectory, UserDirectory, UserRepository
from directory.tracing import TracingDirectory


def new_directory(
    store: UserRepository,
    settings: Settings | None = None,
    registry: CollectorRegistry | None = None,
    tracer: trace.Tracer | None = None,
) -> UserDirectory:
    """Return a UserDirectory with tracing and metrics.

    registry defaults to a fresh CollectorRegistry so repeated assembly (tests,
    reloads) never collides with metrics already registered elsewhere.
    """
    settings = settings or get_settings()
    basic = BasicUserDirectory(
        store,
        CredentialManager(cost=settings.bcrypt_cost),
        ClaimsIssuer(issuer=settings.token_issuer, audience=settings.token_audience),
    )
    traced = TracingDirectory(basic, tracer)
    request_count, request_latency = new_metrics(registry if registry is not None else CollectorRegistry())
    return InstrumentingDirectory(traced, request_count, request_latency)
