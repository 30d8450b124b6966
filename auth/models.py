"""
auth/models.py -- Domain dataclasses and request models for identities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own the
domain shape; the store and the directory do the work.

Request models (NewUserRequest, UpdateUserRequest) are Pydantic v2 models so
input validation happens once, at the boundary, before the directory sees it.

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


class Role(str, Enum):
    admin = "admin"
    user = "user"


def parse_roles(values: Iterable[str]) -> list[Role]:
    """Convert stored role tags back to Role members, preserving order and dropping duplicates."""
    roles: list[Role] = []
    for value in values:
        role = Role(value)
        if role not in roles:
            roles.append(role)
    return roles


def as_utc(moment: datetime) -> datetime:
    """Normalize a timestamp to UTC. Naive datetimes are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Domain entities
# ---------------------------------------------------------------------------


@dataclass
class User:
    """An identity record.

    id is the string form of a random UUID and never changes after creation.
    email is unique across all users. password_hash is the bcrypt output and
    is kept out of repr() and to_public_dict() so it cannot leak into logs or
    responses.
    """

    id: str
    name: str
    last_name: str
    email: str
    country: str
    roles: list[Role]
    date_created: datetime
    date_updated: datetime
    password_hash: bytes = field(default=b"", repr=False)

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "last_name": self.last_name,
            "email": self.email,
            "country": self.country,
            "roles": [r.value for r in self.roles],
            "date_created": self.date_created.isoformat(),
            "date_updated": self.date_updated.isoformat(),
        }


@dataclass
class Claims:
    """Short-lived authorization assertion for an authenticated user. Never persisted."""

    subject: str
    roles: list[Role]
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime

    def authorized(self, *roles: Role) -> bool:
        """Return True if the claims carry at least one of the given roles."""
        return any(r in self.roles for r in roles)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

# Deliberately loose: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
BCRYPT_MAX_PASSWORD_BYTES = 72


class NewUserRequest(BaseModel):
    """Everything needed to create a user.

    Whitespace is not stripped here: leading or trailing spaces in a password
    are significant. bcrypt reads at most 72 bytes of input, so the password
    is bounded in UTF-8 bytes, not characters.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    country: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8)
    password_confirm: str
    roles: list[Role] = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value

    @field_validator("roles")
    @classmethod
    def dedupe_roles(cls, values: list[Role]) -> list[Role]:
        return parse_roles(values)

    @model_validator(mode="after")
    def passwords_match(self) -> NewUserRequest:
        if self.password != self.password_confirm:
            raise ValueError("password and password_confirm do not match")
        return self


class UpdateUserRequest(BaseModel):
    """Profile fields a caller may change on an existing user."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    country: str = Field(min_length=1, max_length=100)
