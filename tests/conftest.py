"""
tests/conftest.py -- Shared test fixtures for PrivateDiary tests.

This module provides:
  - engine / accounts / credentials / diaries: function-scoped core objects on
    a private in-memory SQLite database
  - identity_for(): registers an account and returns its verified Identity
  - _patch_lifespan(): wires a test engine into app.state, bypassing real startup
  - api_client: TestClient against the real FastAPI app for integration tests

Design: the API fixture uses a temporary SQLite file (not :memory:) because
TestClient runs sync route handlers in a thread pool. A :memory: DB is
per-connection and would present a blank schema to each worker thread; a file
DB gets a regular connection pool shared by every thread.

DEBUG and BCRYPT_ROUNDS must be set before any project import so a stray
get_settings() call never raises for a missing SECRET_KEY, and so bcrypt runs
at its cheapest cost factor.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/auth import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from auth.models import Identity
from auth.service import CredentialService
from auth.store import AccountStore
from core.db import create_store_engine
from diary.store import DiaryStore

TEST_SECRET_KEY = "test-secret-key-for-privatediary-0123456789"
TEST_BCRYPT_ROUNDS = 4


# ---------------------------------------------------------------------------
# Core fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = create_store_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def accounts(engine: Engine) -> AccountStore:
    return AccountStore(engine)


@pytest.fixture
def secret_key() -> str:
    return TEST_SECRET_KEY


@pytest.fixture
def credentials_for():
    """Return a factory building a CredentialService on an arbitrary engine."""

    def _make(eng: Engine) -> CredentialService:
        return CredentialService(AccountStore(eng), secret_key=TEST_SECRET_KEY, bcrypt_rounds=TEST_BCRYPT_ROUNDS)

    return _make


@pytest.fixture
def credentials(accounts: AccountStore) -> CredentialService:
    return CredentialService(accounts, secret_key=TEST_SECRET_KEY, bcrypt_rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def diaries(engine: Engine) -> DiaryStore:
    return DiaryStore(engine)


@pytest.fixture
def identity_for(credentials: CredentialService):
    """Return a factory: identity_for("alice") registers alice and yields her Identity."""

    def _make(username: str, password: str = "s3cret-pass") -> Identity:
        result = credentials.register(username, password)
        return credentials.verify_token(result.token)

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(engine: Engine):
    """Return an async context manager that replaces the real lifespan.

    Wires the test engine and core components into app.state so TestClient
    routes see an isolated test DB rather than the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = engine
        app.state.credentials = CredentialService(
            AccountStore(engine),
            secret_key=TEST_SECRET_KEY,
            bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        )
        app.state.diaries = DiaryStore(engine)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory: pytest.TempPathFactory) -> Generator[TestClient, None, None]:
    """Yield a TestClient bound to a fresh file-backed database for this module."""
    db_path = tmp_path_factory.mktemp("api") / "privatediary.db"
    eng = create_store_engine(f"sqlite:///{db_path}")

    app.router.lifespan_context = _patch_lifespan(eng)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    eng.dispose()


@pytest.fixture
def register_user(api_client: TestClient):
    """Return a factory that registers through the API and yields (token, account_id).

    Usernames default to a random value because api_client's database is shared
    by every test in the module.
    """

    def _register(username: str | None = None, password: str = "s3cret-pass") -> tuple[str, str]:
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        resp = api_client.post("/api/v1/auth/register", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["token"], data["user"]["id"]

    return _register
