"""
auth/guard.py -- AuthorizationGuard: may this caller act on this user?

The whole policy is one pure function over (roles, subject, target):
  - admin callers may act on any user
  - any caller may act on their own record (self-access)
  - everything else is forbidden

It performs no I/O and keeps no state, so the directory can (and must) call it
before any store access that discloses or mutates a specific user.

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

from collections.abc import Iterable

from auth.models import Claims, Role


def is_allowed(roles: Iterable[Role], subject: str, target_user_id: str) -> bool:
    if Role.admin in set(roles):
        return True
    return subject == target_user_id


def authorize(claims: Claims, target_user_id: str) -> bool:
    """Return True if claims permit an operation on target_user_id."""
    return is_allowed(claims.roles, claims.subject, target_user_id)
