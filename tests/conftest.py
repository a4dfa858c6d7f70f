"""
tests/conftest.py -- Shared test fixtures for DragonFruit.

This module provides:
  - settings, settings_factory: explicit Settings for unit tests
  - FakeClock: a settable clock for TokenService
  - _make_test_stores(): isolated in-memory DBs for users + vault
  - _patch_lifespan(): wires test stores and services into app.state
  - api_client: TestClient + bearer token + user id for integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync work in a thread pool. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread.

Environment must be set before any api/ import: api/main.py resolves
Settings at import time and refuses to start without JWT_SECRET.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing api.main.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdefghijklmnop")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api import offload
from api.main import app
from auth.crypto import CredentialCipher
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings
from vault.store import VaultStore

TEST_SECRET = "unit-test-secret-with-more-than-32-characters"


def _make_settings(**overrides) -> Settings:
    """Build Settings from explicit values -- the secret never comes from env or .env."""
    values = {"jwt_secret": TEST_SECRET, "debug": False}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeClock:
    """Callable clock returning a settable unix time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings_factory():
    """Return a builder for Settings overrides, e.g. settings_factory(token_ttl_seconds=60)."""
    return _make_settings


@pytest.fixture
def settings() -> Settings:
    return _make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(settings: Settings, clock: FakeClock) -> TokenService:
    return TokenService(lambda: settings, clock)


@pytest.fixture
def cipher(settings: Settings) -> CredentialCipher:
    return CredentialCipher(lambda: settings)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, VaultStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores share one named DB per suffix, like the single database file
    they share in production.
    """
    url = f"sqlite:///file:test_dragonfruit_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), VaultStore(url)


def _patch_lifespan(user_store: UserStore, vault: VaultStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.vault = vault
        app.state.tokens = TokenService(get_settings)
        app.state.cipher = CredentialCipher(get_settings)
        offload.configure(2)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The user "testuser" / "testpass123" exists before the client starts.
    Each test module gets its own database.
    """
    user_store, vault = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    uid = user_store.create_user(
        User(username="testuser", email="testuser@example.com", password_hash=hash_password("testpass123"))
    )
    token = TokenService(get_settings).issue(uuid.UUID(uid))

    app.router.lifespan_context = _patch_lifespan(user_store, vault)

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client, token, uid

    vault.close()
    user_store.close()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
