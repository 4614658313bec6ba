"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for LabAuth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The app
      lifespan and the CLI pass that instance explicitly into UserStore and
      TokenService; neither reaches back into this module on its own.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET, db_host -> DB_HOST).

  @model_validator(mode="after"): Enforces the fail-fast rule for the token
      signing secret. An auth service cannot run without one, so a missing
      JWT_SECRET makes Settings() raise and the process refuses to start.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger("labauth.config")

_DEFAULT_SQLITE_PATH = Path(__file__).resolve().parent.parent / "auth" / "labauth.db"

# Deployment origins carried over from the hosted frontend and local test setups.
_DEFAULT_ORIGINS = [
    "https://qlphonglabdb.onrender.com",
    "http://127.0.0.1:5500",
    "http://localhost:3000",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_secret has a usable default, so a developer only
    has to export JWT_SECRET to get a working SQLite-backed instance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator below
    # rejects it, so callers never see "".
    jwt_secret: str = ""
    token_expire_seconds: int = 2 * 60 * 60

    # ------------------------------------------------------------------
    # Credential store
    # ------------------------------------------------------------------

    database_url: str = ""
    db_driver: str = "mysql+pymysql"
    db_host: str = ""
    db_port: int = 3306
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""
    db_pool_size: int = 10

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    # NoDecode hands the raw env string to parse_list() instead of forcing JSON.
    allowed_origins: Annotated[list[str], NoDecode] = list(_DEFAULT_ORIGINS)
    allowed_hosts: Annotated[list[str], NoDecode] = ["*"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("allowed_origins", "allowed_hosts", mode="before")
    @classmethod
    def parse_list(cls, v):
        """Accept a JSON list or a comma-separated string (Docker/.env friendly)."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                v = [item.strip() for item in v.split(",") if item.strip()]
        return list(v) if isinstance(v, list) else [v]

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Refuse to start without a signing secret.

        There is no auto-generated fallback: tokens signed with a throwaway key
        would silently stop verifying after every restart.
        """
        if not self.jwt_secret:
            raise ValueError(
                "JWT_SECRET is required. Set JWT_SECRET in your environment or .env file."
            )
        if len(self.jwt_secret) < 32:
            logger.warning("JWT_SECRET is shorter than 32 characters; use a longer random value.")
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def sqlalchemy_url(self) -> str:
        """Resolve the credential store URL.

        Priority: DATABASE_URL, then a URL assembled from the DB_* parts when
        DB_HOST is set, then a local SQLite file for development.
        """
        if self.database_url:
            return self.database_url
        if self.db_host:
            url = URL.create(
                drivername=self.db_driver,
                username=self.db_user or None,
                password=self.db_password or None,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name or None,
            )
            return url.render_as_string(hide_password=False)
        return f"sqlite:///{_DEFAULT_SQLITE_PATH}"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
