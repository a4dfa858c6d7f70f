"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for DragonFruit happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  Settings provider: services (TokenService, CredentialCipher) are built with
      a zero-argument callable that returns Settings, defaulting to
      get_settings. They call it on every operation instead of copying the
      secret into an attribute, so a rotation (new JWT_SECRET in the
      environment + get_settings.cache_clear()) applies to the next call.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode generates a secret with a
      warning, production mode refuses to start without one.

Security notes:
  [M6] JWT_SECRET shorter than 32 chars is rejected outright. Token signing
       and credential key derivation both rely on its entropy.

  [M7] In production mode (DEBUG not set or false), a missing JWT_SECRET is a
       hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or vault/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Callable

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("dragonfruit.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'dragonfruit.db'}"

# Only HMAC algorithms -- the secret is a shared symmetric key.
_HMAC_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields except jwt_secret have defaults. The model_validator enforces
    the startup policy for the secret.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `jwt_secret` reads from JWT_SECRET, `debug` reads from DEBUG.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Session tokens
    # ------------------------------------------------------------------

    token_issuer: str = "dragonfruit"
    token_ttl_seconds: int = 60 * 60 * 24
    token_algorithm: str = "HS256"

    # ------------------------------------------------------------------
    # Second factor
    # ------------------------------------------------------------------

    totp_label: str = "DragonFruit"
    totp_step_seconds: int = 30
    totp_digits: int = 6

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------

    # Upper bound on concurrent argon2 computations (login, register,
    # credential encrypt/decrypt). Each one holds ~64 MiB while it runs.
    hash_workers: int = 4
    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:5173", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret(self) -> "Settings":
        """Enforce the JWT_SECRET startup policy [M6][M7].

        Dev mode (DEBUG=true): auto-generate a random secret with a warning.
            Tokens and encrypted credentials will not survive a restart --
            acceptable for local dev only.

        Production mode: refuse to start if JWT_SECRET is missing. Every
            stored credential password is keyed off this value; running with
            a random one would make them undecryptable after restart.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated JWT_SECRET. "
                    "Sessions and stored credentials will not survive a restart."
                )
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        if self.token_algorithm not in _HMAC_ALGORITHMS:
            raise ValueError(f"TOKEN_ALGORITHM must be one of {sorted(_HMAC_ALGORITHMS)}.")
        if self.token_ttl_seconds <= 0:
            raise ValueError("TOKEN_TTL_SECONDS must be positive.")
        if self.totp_step_seconds <= 0:
            raise ValueError("TOTP_STEP_SECONDS must be positive.")
        if not 6 <= self.totp_digits <= 10:
            raise ValueError("TOTP_DIGITS must be between 6 and 10.")
        if self.hash_workers < 1:
            raise ValueError("HASH_WORKERS must be at least 1.")
        return self


SettingsProvider = Callable[[], Settings]


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables. The same call is the key
    rotation hook in production.
    """
    return Settings()
