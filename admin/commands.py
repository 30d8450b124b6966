"""
admin/commands.py -- Operator commands: schema migration, seed data, signing keys.

These run outside the request path and talk to the store directly. main.py
parses arguments and dispatches here; each command takes plain values so
tests can call it without going through argparse.

Seed data uses fixed ids. Repeated runs are idempotent: a user whose email
is already on file is skipped, never overwritten.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from auth.credentials import CredentialManager
from auth.models import Role, User
from auth.store import UserStore

logger = logging.getLogger("identity.admin")

_KEY_SIZE = 2048
_PUBLIC_EXPONENT = 65537

# (id, email, name, last_name, country, password, roles)
SEED_USERS: tuple[tuple[str, str, str, str, str, str, tuple[Role, ...]], ...] = (
    (
        "5cf37266-3473-4006-984f-9325122678b7",
        "admin@example.com",
        "Admin",
        "Istrator",
        "Argentina",
        "gophers-admin",
        (Role.admin, Role.user),
    ),
    (
        "45b5fbd3-755f-4379-8f07-a58d4a30fa2f",
        "user@example.com",
        "Regular",
        "User",
        "Argentina",
        "gophers-user",
        (Role.user,),
    ),
)


class CommandError(Exception):
    """A command could not complete. main.py prints the message and exits non-zero."""


def migrate(db_url: str) -> list[str]:
    """Create the schema. Safe to run repeatedly; returns the table names."""
    store = UserStore(db_url)
    try:
        tables = store.create_schema()
    finally:
        store.close()
    logger.info("migrations complete: %s", ", ".join(tables))
    return tables


def seed(db_url: str, bcrypt_cost: int, now: datetime | None = None) -> int:
    """Insert the seed users that are not already present. Returns the number inserted."""
    moment = now or datetime.now(timezone.utc)
    creds = CredentialManager(cost=bcrypt_cost)
    store = UserStore(db_url)
    inserted = 0
    try:
        for user_id, email, name, last_name, country, password, roles in SEED_USERS:
            if store.count_by_email(email):
                logger.info("seed: %s already present, skipping", email)
                continue
            store.insert(
                User(
                    id=user_id,
                    name=name,
                    last_name=last_name,
                    email=email,
                    country=country,
                    password_hash=creds.hash(password),
                    roles=list(roles),
                    date_created=moment,
                    date_updated=moment,
                )
            )
            inserted += 1
    finally:
        store.close()
    logger.info("seed data complete: %d user(s) inserted", inserted)
    return inserted


def genkey(private_path: str | Path, public_path: str | Path, overwrite: bool = False) -> tuple[Path, Path]:
    """Write a fresh RSA private key and its public key as PEM files.

    Refuses to replace existing files unless overwrite=True: losing the
    private key invalidates every token signed with it.
    """
    private_file = Path(private_path)
    public_file = Path(public_path)
    if not overwrite:
        for path in (private_file, public_file):
            if path.exists():
                raise CommandError(f"{path} already exists; pass --force to replace it")

    private_key = rsa.generate_private_key(public_exponent=_PUBLIC_EXPONENT, key_size=_KEY_SIZE)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    private_file.write_bytes(private_pem)
    private_file.chmod(0o600)
    public_file.write_bytes(public_pem)
    logger.info("wrote private key to %s and public key to %s", private_file, public_file)
    return private_file, public_file
