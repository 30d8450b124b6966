"""
directory/errors.py -- Error taxonomy for UserDirectory operations.

Domain errors (NotFound, InvalidID, DuplicatedEmail, AuthenticationFailure,
Forbidden) are raised as-is because callers branch on their type.

Everything else is wrapped in OperationFailure with the operation that was
being attempted; the original exception is chained (raise ... from err) and
kept on .cause for diagnostics. Store failures use the PersistenceFailure
subclass.

Cancellation errors (core.context.Cancelled / DeadlineExceeded) are not part
of this hierarchy and propagate unwrapped.
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for every error raised by a UserDirectory."""


class NotFound(DirectoryError):
    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class InvalidID(DirectoryError):
    def __init__(self, message: str = "ID is not in its proper form") -> None:
        super().__init__(message)


class DuplicatedEmail(DirectoryError):
    def __init__(self, message: str = "email already in use") -> None:
        super().__init__(message)


class AuthenticationFailure(DirectoryError):
    """Wrong email or wrong password. Callers cannot tell which."""

    def __init__(self, message: str = "authentication failed") -> None:
        super().__init__(message)


class Forbidden(DirectoryError):
    def __init__(self, message: str = "attempted action is not allowed") -> None:
        super().__init__(message)


class OperationFailure(DirectoryError):
    """An unexpected failure, annotated with what was being attempted."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        message = operation if cause is None else f"{operation}: {cause}"
        super().__init__(message)


class PersistenceFailure(OperationFailure):
    """The store failed for a reason other than a missing row."""
