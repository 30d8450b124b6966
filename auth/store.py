"""
auth/store.py -- SQLAlchemy Core persistence layer for User entities.

Pattern: Repository + Data Mapper.
UserStore is the repository; _user_values / _row_to_user are the mappers. The
directory never touches SQL directly, and the store never makes access-control
or uniqueness decisions beyond what the schema itself enforces.

Store contract (what the directory relies on):
  count_by_email(email)           -> int
  insert(user)                    -> None, IntegrityError on duplicate id/email
  update_fields(id, ..., updated) -> None
  delete_by_id(id)                -> None, absent ids are not an error
  select_page(offset, limit)      -> list[User] ordered by user_id
  select_by_id(id)                -> User | None
  select_by_email(email)          -> User | None
Every other failure surfaces as sqlalchemy.exc.SQLAlchemyError.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced by the schema. The directory's pre-insert count is
  only a fast path; two concurrent inserts with the same email cannot both
  succeed because the second one violates this constraint.

Timestamps are stored as ISO 8601 UTC text and roles as a JSON array so the
same schema works on SQLite and PostgreSQL.

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import JSON, Column, LargeBinary, MetaData, String, Table, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from auth.models import User, as_utc, parse_roles

logger = logging.getLogger("identity.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("user_id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", LargeBinary, nullable=False),
    Column("roles", JSON, nullable=False),
    Column("name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("country", String(100), nullable=False),
    Column("date_created", String(32), nullable=False),
    Column("date_updated", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. Has no effect on in-memory databases.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///identity.db")
        store.insert(user)
        found = store.select_by_email("ada@example.com")
        store.close()

    "sqlite:///:memory:" gets a StaticPool so every connection sees the same
    in-memory database (a plain pool would hand each thread a blank schema).
    """

    def __init__(self, db_url: str) -> None:
        self.db_url = db_url
        self.engine: Engine = _make_engine(db_url)
        self.create_schema()

    def create_schema(self) -> list[str]:
        """Create any missing tables. Idempotent; returns the table names managed here."""
        metadata.create_all(self.engine)
        return sorted(metadata.tables)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count_by_email(self, email: str) -> int:
        """Return how many users hold exactly this email (case-sensitive)."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(users).where(users.c.email == email)).scalar()
        return result or 0

    def select_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.user_id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def select_by_email(self, email: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def select_page(self, offset: int, limit: int) -> list[User]:
        """Return up to `limit` users ordered by user_id, skipping the first `offset`."""
        with self.engine.connect() as conn:
            rows = conn.execute(users.select().order_by(users.c.user_id).offset(offset).limit(limit)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, user: User) -> None:
        """Insert a new user.

        Raises sqlalchemy.exc.IntegrityError if the id or email already exists.
        """
        with self.engine.begin() as conn:
            conn.execute(users.insert().values(**_user_values(user)))

    def update_fields(
        self,
        user_id: str,
        name: str,
        last_name: str,
        email: str,
        country: str,
        date_updated: datetime,
    ) -> None:
        """Overwrite the mutable profile fields of a user. A missing user_id updates nothing."""
        with self.engine.begin() as conn:
            conn.execute(
                users.update()
                .where(users.c.user_id == user_id)
                .values(
                    name=name,
                    last_name=last_name,
                    email=email,
                    country=country,
                    date_updated=as_utc(date_updated).isoformat(),
                )
            )

    def delete_by_id(self, user_id: str) -> None:
        """Delete a user. Deleting an id that does not exist is not an error."""
        with self.engine.begin() as conn:
            result = conn.execute(users.delete().where(users.c.user_id == user_id))
        if result.rowcount == 0:
            logger.debug("delete_by_id matched no row for %s", user_id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_engine(db_url: str) -> Engine:
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _set_wal_mode)
    return engine


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _user_values(user: User) -> dict:
    return {
        "user_id": user.id,
        "email": user.email,
        "password_hash": user.password_hash,
        "roles": [r.value for r in user.roles],
        "name": user.name,
        "last_name": user.last_name,
        "country": user.country,
        "date_created": as_utc(user.date_created).isoformat(),
        "date_updated": as_utc(user.date_updated).isoformat(),
    }


def _row_to_user(row) -> User:
    return User(
        id=row.user_id,
        name=row.name,
        last_name=row.last_name,
        email=row.email,
        country=row.country,
        password_hash=bytes(row.password_hash),
        roles=parse_roles(row.roles),
        date_created=datetime.fromisoformat(row.date_created),
        date_updated=datetime.fromisoformat(row.date_updated),
    )
