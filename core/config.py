"""
core/config.py -- Centralized configuration for the identity service via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      (prefix IDENTITY_) and an optional .env file. Field names map to env var
      names, e.g. bcrypt_cost -> IDENTITY_BCRYPT_COST. Type coercion and
      validation are built in.

  @field_validator: range and vocabulary checks run at startup so a bad value
      fails fast instead of surfacing on the first login attempt.

Layer rule: core/ is the kernel. This module may not import from auth/,
directory/, or admin/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("identity.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'identity.db'}"

# bcrypt accepts log2 rounds in [4, 31].
_MIN_BCRYPT_COST = 4
_MAX_BCRYPT_COST = 31


class Settings(BaseSettings):
    """Service settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Credentials and claims
    # ------------------------------------------------------------------

    bcrypt_cost: int = 12
    token_issuer: str = "identity service"
    token_audience: str = "clients"

    # Key pair written by `python main.py genkey`.
    private_key_path: str = "private.pem"
    public_key_path: str = "public.pem"
    key_id: str = "54bb2165-71e1-41a6-af3e-7da4a0e1e2c1"

    # ------------------------------------------------------------------
    # Per-call deadline
    # ------------------------------------------------------------------

    operation_timeout_seconds: float = 5.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("bcrypt_cost")
    @classmethod
    def validate_bcrypt_cost(cls, value: int) -> int:
        if not _MIN_BCRYPT_COST <= value <= _MAX_BCRYPT_COST:
            raise ValueError(f"bcrypt_cost must be between {_MIN_BCRYPT_COST} and {_MAX_BCRYPT_COST}.")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level {value!r}.")
        return level

    @field_validator("operation_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("operation_timeout_seconds must be positive.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
