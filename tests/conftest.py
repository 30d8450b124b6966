"""
tests/conftest.py -- Shared fixtures for the identity service tests.

This module provides:
  - RecordingStore: dict-backed UserRepository that logs every call, so tests
    can assert on exactly which store operations ran (or that none did)
  - store: a real UserStore on a private in-memory SQLite database
  - creds / issuer / directory: the service wired to the SQL store
  - make_request(), claims_for(): builders for requests and caller claims

bcrypt runs at cost 4 (its minimum) everywhere so the suite stays fast; the
cost factor does not change any behavior under test.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from auth.claims import ClaimsIssuer
from auth.credentials import CredentialManager
from auth.models import Claims, NewUserRequest, Role, User
from auth.store import UserStore
from core.context import CallContext
from directory.service import BasicUserDirectory

TEST_COST = 4
NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
PASSWORD = "correct-horse-battery"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_request(email: str = "ada@example.com", roles: list[Role] | None = None, **overrides) -> NewUserRequest:
    fields = {
        "name": "Ada",
        "last_name": "Lovelace",
        "email": email,
        "country": "United Kingdom",
        "password": PASSWORD,
        "password_confirm": PASSWORD,
        "roles": roles if roles is not None else [Role.user],
    }
    fields.update(overrides)
    return NewUserRequest(**fields)


def claims_for(subject: str, *roles: Role) -> Claims:
    return Claims(
        subject=subject,
        roles=list(roles) or [Role.user],
        issuer="identity service",
        audience="clients",
        issued_at=NOW,
        expires_at=NOW + timedelta(hours=1),
    )


# ---------------------------------------------------------------------------
# Recording store
# ---------------------------------------------------------------------------


class RecordingStore:
    """In-memory UserRepository that records every call.

    Unlike UserStore it does not enforce UNIQUE(email); tests that need the
    constraint use the SQL store. Set fail_with to make every call raise.
    Users go in and come out as copies, like rows from a real database.
    """

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.users: dict[str, User] = {}
        self.calls: list[tuple] = []
        self.fail_with = fail_with

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def count_by_email(self, email: str) -> int:
        self._record("count_by_email", email)
        return sum(1 for u in self.users.values() if u.email == email)

    def insert(self, user: User) -> None:
        self._record("insert", user.id)
        self.users[user.id] = _copy(user)

    def update_fields(self, user_id, name, last_name, email, country, date_updated) -> None:
        self._record("update_fields", user_id)
        user = self.users.get(user_id)
        if user is not None:
            user.name, user.last_name, user.email, user.country = name, last_name, email, country
            user.date_updated = date_updated

    def delete_by_id(self, user_id: str) -> None:
        self._record("delete_by_id", user_id)
        self.users.pop(user_id, None)

    def select_page(self, offset: int, limit: int) -> list[User]:
        self._record("select_page", offset, limit)
        ordered = sorted(self.users.values(), key=lambda u: u.id)
        return [_copy(u) for u in ordered[offset : offset + limit]]

    def select_by_id(self, user_id: str) -> User | None:
        self._record("select_by_id", user_id)
        user = self.users.get(user_id)
        return _copy(user) if user is not None else None

    def select_by_email(self, email: str) -> User | None:
        self._record("select_by_email", email)
        user = next((u for u in self.users.values() if u.email == email), None)
        return _copy(user) if user is not None else None


def _copy(user: User) -> User:
    return replace(user, roles=list(user.roles))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ctx() -> CallContext:
    return CallContext.background(trace_id="test-trace")


@pytest.fixture
def creds() -> CredentialManager:
    return CredentialManager(cost=TEST_COST)


@pytest.fixture
def issuer() -> ClaimsIssuer:
    return ClaimsIssuer()


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def directory(store: UserStore, creds: CredentialManager, issuer: ClaimsIssuer) -> BasicUserDirectory:
    return BasicUserDirectory(store, creds, issuer)


@pytest.fixture
def recording_directory(
    recording_store: RecordingStore, creds: CredentialManager, issuer: ClaimsIssuer
) -> BasicUserDirectory:
    return BasicUserDirectory(recording_store, creds, issuer)
