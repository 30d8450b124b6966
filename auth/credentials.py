"""
auth/credentials.py -- Password hashing and verification (CredentialManager).

Security design decisions:
  bcrypt, used directly (no passlib wrapper). Every hash() call draws a fresh
  salt from bcrypt.gensalt(), so hashing the same password twice yields two
  different outputs that both verify. The cost factor (log2 rounds) is tunable
  per manager; Settings.bcrypt_cost supplies the production value and tests
  use the minimum (4) for speed.

  verify() never raises and never says why it failed. A malformed stored hash,
  a wrong password, and a non-UTF-8 input all produce False. bcrypt.checkpw
  compares in constant time.

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

import logging
from functools import cached_property

import bcrypt

logger = logging.getLogger("identity.auth")

DEFAULT_COST = 12


class HashingFailure(Exception):
    """bcrypt refused to hash the given password (e.g. invalid cost factor, over-long input)."""


def _encode(password: str | bytes) -> bytes:
    return password if isinstance(password, bytes) else password.encode("utf-8")


class CredentialManager:
    """Generates and verifies bcrypt password hashes.

    Usage:
        creds = CredentialManager(cost=12)
        stored = creds.hash("s3cret-password")
        creds.verify(stored, "s3cret-password")   # True
    """

    def __init__(self, cost: int = DEFAULT_COST) -> None:
        self.cost = cost

    def hash(self, password: str | bytes, cost: int | None = None) -> bytes:
        """Return a salted bcrypt hash of password. Raises HashingFailure on any bcrypt error."""
        rounds = self.cost if cost is None else cost
        try:
            return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
        except (ValueError, TypeError) as err:
            raise HashingFailure(f"bcrypt could not hash password at cost {rounds}") from err

    @cached_property
    def dummy_hash(self) -> bytes:
        """A throwaway hash at this manager's cost.

        Verified against when an account does not exist, so an unknown email
        and a wrong password both cost exactly one bcrypt check.
        """
        return self.hash("identity-timing-equalizer")

    def verify(self, hashed: bytes | str | None, password: str | bytes) -> bool:
        """Return True only if password matches hashed. Any problem is reported as False."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(_encode(password), _encode(hashed))
        except (ValueError, TypeError, UnicodeError):
            logger.debug("password verification rejected a malformed hash or input")
            return False
