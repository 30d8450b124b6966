#!/usr/bin/env python3
"""
Identity service admin tool -- schema, seed data, and signing keys.

Usage:
  python main.py migrate
  python main.py seed
  python main.py genkey
  python main.py genkey --force
  python main.py --db-url sqlite:///other.db migrate

Environment variables (see core/config.py; all optional):
  IDENTITY_DATABASE_URL     SQLAlchemy URL of the user store.
  IDENTITY_BCRYPT_COST      bcrypt cost for seeded passwords (default 12).
  IDENTITY_PRIVATE_KEY_PATH / IDENTITY_PUBLIC_KEY_PATH
                            Where genkey writes the PEM files.
  IDENTITY_LOG_LEVEL        Logging level (default INFO).
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from admin.commands import CommandError, genkey, migrate, seed
from core.config import get_settings

logger = logging.getLogger("identity.admin")

_COMMANDS = {
    "migrate": "create the schema in the database",
    "seed": "add data to the database",
    "genkey": "generate a set of private/public key files",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identity-admin",
        description="Administrative commands for the identity service store.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="\n".join(f"  {name}: {help_text}" for name, help_text in _COMMANDS.items()),
    )
    parser.add_argument(
        "command",
        nargs="?",
        metavar="COMMAND",
        help="One of: " + ", ".join(_COMMANDS),
    )
    parser.add_argument(
        "--db-url",
        metavar="URL",
        default=None,
        help="Override IDENTITY_DATABASE_URL for this run",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="genkey only: overwrite existing key files",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    db_url = args.db_url or settings.database_url

    if args.command not in _COMMANDS:
        for name, help_text in _COMMANDS.items():
            print(f"{name}: {help_text}")
        print("provide a command to get more help.")
        return 1

    try:
        if args.command == "migrate":
            migrate(db_url)
        elif args.command == "seed":
            seed(db_url, settings.bcrypt_cost)
        else:
            genkey(settings.private_key_path, settings.public_key_path, overwrite=args.force)
    except (CommandError, SQLAlchemyError, OSError) as err:
        logger.error("%s failed: %s", args.command, err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
