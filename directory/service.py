"""
directory/service.py -- UserDirectory: create, update, delete, list, fetch, authenticate.

BasicUserDirectory composes the store, the CredentialManager, the
AuthorizationGuard and the ClaimsIssuer. It keeps no state between calls, so a
single instance is safe to share across threads.

Order of checks for operations on a specific user:
  1. id syntax      -> InvalidID      (before any store access)
  2. guard          -> Forbidden      (before any store access)
  3. ctx.check()    -> Cancelled / DeadlineExceeded (again once the store returns)
  4. store call     -> NotFound, or PersistenceFailure for anything unexpected

Email uniqueness: create() counts existing rows first as a fast path. The
store's UNIQUE(email) constraint is what actually closes the race between two
concurrent creates; an IntegrityError from insert() is reported as
DuplicatedEmail. update() does not check uniqueness at all (current
behavior); a store that rejects the write surfaces it as PersistenceFailure.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from auth.claims import ClaimsIssuer
from auth.credentials import CredentialManager, HashingFailure
from auth.guard import authorize
from auth.models import Claims, NewUserRequest, UpdateUserRequest, User, as_utc
from core.context import CallContext, Cancelled
from directory.errors import (
    AuthenticationFailure,
    DirectoryError,
    DuplicatedEmail,
    Forbidden,
    InvalidID,
    NotFound,
    OperationFailure,
    PersistenceFailure,
)

logger = logging.getLogger("identity.directory")

# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    """What the directory needs from persistence. auth.store.UserStore implements it."""

    def count_by_email(self, email: str) -> int: ...

    def insert(self, user: User) -> None: ...

    def update_fields(
        self, user_id: str, name: str, last_name: str, email: str, country: str, date_updated: datetime
    ) -> None: ...

    def delete_by_id(self, user_id: str) -> None: ...

    def select_page(self, offset: int, limit: int) -> list[User]: ...

    def select_by_id(self, user_id: str) -> User | None: ...

    def select_by_email(self, email: str) -> User | None: ...


class UserDirectory(Protocol):
    """The operation set shared by BasicUserDirectory and every decorator around it."""

    def create(self, ctx: CallContext, request: NewUserRequest, now: datetime) -> User: ...

    def update(
        self, ctx: CallContext, claims: Claims, user_id: str, request: UpdateUserRequest, now: datetime
    ) -> User: ...

    def delete(self, ctx: CallContext, claims: Claims, user_id: str) -> None: ...

    def get_all(self, ctx: CallContext, page_number: int, rows_per_page: int) -> list[User]: ...

    def get_by_id(self, ctx: CallContext, claims: Claims, user_id: str) -> User: ...

    def authenticate(self, ctx: CallContext, now: datetime, email: str, password: str) -> Claims: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def validate_id(user_id: str) -> None:
    """Raise InvalidID unless user_id is a UUID in canonical 8-4-4-4-12 form.

    uuid.UUID() alone is too lenient: it drops every hyphen before parsing, so
    "1-2345678123456781234567812345678---" would pass.
    """
    try:
        canonical = str(uuid.UUID(user_id)) == user_id.lower()
    except (ValueError, TypeError, AttributeError) as err:
        raise InvalidID() from err
    if not canonical:
        raise InvalidID()


@contextmanager
def _store_call(ctx: CallContext, operation: str) -> Iterator[None]:
    """Run a store call, wrapping unexpected failures in PersistenceFailure.

    Domain errors and cancellation pass through untouched. The context is
    checked on both sides of the call: a deadline that passes (or a cancel()
    that arrives) while the store is working aborts the operation instead of
    letting its result through. A write that already committed stays committed.
    """
    ctx.check()
    try:
        yield
    except (DirectoryError, Cancelled):
        raise
    except Exception as err:
        logger.warning("trace %s: %s failed: %s", ctx.trace_id, operation, err)
        raise PersistenceFailure(operation, err) from err
    ctx.check()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class BasicUserDirectory:
    """UserDirectory backed by a UserRepository, with no instrumentation.

    Usage:
        directory = BasicUserDirectory(UserStore(url), CredentialManager(), ClaimsIssuer())
        user = directory.create(CallContext.with_timeout(2.0), request, datetime.now(timezone.utc))
    """

    def __init__(
        self,
        store: UserRepository,
        credentials: CredentialManager | None = None,
        issuer: ClaimsIssuer | None = None,
    ) -> None:
        self.store = store
        self.credentials = credentials or CredentialManager()
        self.issuer = issuer or ClaimsIssuer()

    def create(self, ctx: CallContext, request: NewUserRequest, now: datetime) -> User:
        """Create a user with a freshly generated id and a hashed password."""
        with _store_call(ctx, f"looking for users with the email {request.email}"):
            num_users = self.store.count_by_email(request.email)
        if num_users != 0:
            raise DuplicatedEmail()

        ctx.check()
        try:
            password_hash = self.credentials.hash(request.password)
        except HashingFailure as err:
            raise OperationFailure("generating password hash", err) from err

        created = as_utc(now)
        user = User(
            id=str(uuid.uuid4()),
            name=request.name,
            last_name=request.last_name,
            email=request.email,
            country=request.country,
            password_hash=password_hash,
            roles=list(request.roles),
            date_created=created,
            date_updated=created,
        )

        try:
            with _store_call(ctx, "inserting user"):
                self.store.insert(user)
        except PersistenceFailure as err:
            if isinstance(err.cause, IntegrityError):
                raise DuplicatedEmail() from err.cause
            raise

        logger.info("trace %s: created user %s", ctx.trace_id, user.id)
        return user

    def update(
        self, ctx: CallContext, claims: Claims, user_id: str, request: UpdateUserRequest, now: datetime
    ) -> User:
        """Replace a user's profile fields. Authorization is enforced by get_by_id()."""
        user = self.get_by_id(ctx, claims, user_id)

        user.name = request.name
        user.last_name = request.last_name
        user.email = request.email
        user.country = request.country
        user.date_updated = as_utc(now)

        with _store_call(ctx, "updating user"):
            self.store.update_fields(
                user.id, user.name, user.last_name, user.email, user.country, user.date_updated
            )
        return user

    def delete(self, ctx: CallContext, claims: Claims, user_id: str) -> None:
        """Delete a user. Deleting an id that no longer exists succeeds silently."""
        validate_id(user_id)
        self._authorize(ctx, claims, user_id)
        with _store_call(ctx, f"deleting user {user_id}"):
            self.store.delete_by_id(user_id)
        logger.info("trace %s: deleted user %s", ctx.trace_id, user_id)

    def get_all(self, ctx: CallContext, page_number: int, rows_per_page: int) -> list[User]:
        """Return one page of users ordered by id. page_number starts at 1."""
        offset = (page_number - 1) * rows_per_page
        with _store_call(ctx, "selecting users"):
            return self.store.select_page(offset, rows_per_page)

    def get_by_id(self, ctx: CallContext, claims: Claims, user_id: str) -> User:
        validate_id(user_id)
        self._authorize(ctx, claims, user_id)
        with _store_call(ctx, f"selecting user {user_id!r}"):
            user = self.store.select_by_id(user_id)
        if user is None:
            raise NotFound()
        return user

    def authenticate(self, ctx: CallContext, now: datetime, email: str, password: str) -> Claims:
        """Verify email and password and return Claims for the user.

        An unknown email and a wrong password both raise AuthenticationFailure.
        The unknown-email path still runs one bcrypt check so response time
        does not reveal whether the account exists.
        """
        try:
            user = self._get_by_email(ctx, email)
        except NotFound:
            self.credentials.verify(self.credentials.dummy_hash, password)
            raise AuthenticationFailure() from None

        if not self.credentials.verify(user.password_hash, password):
            logger.info("trace %s: password mismatch for user %s", ctx.trace_id, user.id)
            raise AuthenticationFailure()

        return self.issuer.issue(user, now)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _authorize(self, ctx: CallContext, claims: Claims, user_id: str) -> None:
        if not authorize(claims, user_id):
            logger.info("trace %s: %s denied access to user %s", ctx.trace_id, claims.subject, user_id)
            raise Forbidden()

    def _get_by_email(self, ctx: CallContext, email: str) -> User:
        with _store_call(ctx, "selecting single user"):
            user = self.store.select_by_email(email)
        if user is None:
            raise NotFound()
        return user
