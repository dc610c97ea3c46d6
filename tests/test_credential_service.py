"""
tests/test_credential_service.py -- Unit tests for auth/service.py.

Covers:
  - register -> login -> verify_token yields the same account id
  - DuplicateUsername, including concurrent registrations racing on one name
  - usernames are case-sensitive
  - MissingFields on empty input
  - InvalidCredentials is the same kind for unknown user and wrong password
  - public fields never include the hash; nothing secret is logged
  - store failures surface as StoreUnavailable
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from auth import service as service_module
from auth.models import AuthResult, Identity
from auth.service import CredentialService
from auth.store import AccountStore
from auth.tokens import create_access_token
from core.db import create_store_engine
from core.errors import (
    DuplicateUsername,
    ExpiredToken,
    InvalidCredentials,
    InvalidToken,
    MissingFields,
    MissingToken,
    StoreUnavailable,
)


class TestRegisterAndLogin:
    def test_register_login_verify_round_trip(self, credentials: CredentialService) -> None:
        registered = credentials.register("alice", "wonderland")
        logged_in = credentials.login("alice", "wonderland")

        assert registered.account.id == logged_in.account.id
        assert registered.account.username == "alice"
        assert credentials.verify_token(registered.token) == Identity(registered.account.id)
        assert credentials.verify_token(logged_in.token).account_id == registered.account.id

    def test_register_returns_public_fields_only(self, credentials: CredentialService) -> None:
        result = credentials.register("bob", "builder-pass")
        assert isinstance(result, AuthResult)
        assert not hasattr(result.account, "secret_hash")
        assert len(result.account.id) == 32
        assert result.account.created_at

    def test_password_is_stored_hashed(self, credentials: CredentialService, accounts: AccountStore) -> None:
        credentials.register("carol", "plaintext-pw")
        stored = accounts.get_by_username("carol")
        assert stored is not None
        assert stored.secret_hash != "plaintext-pw"
        assert "plaintext-pw" not in stored.secret_hash

    def test_duplicate_username(self, credentials: CredentialService) -> None:
        credentials.register("dave", "first-pass")
        with pytest.raises(DuplicateUsername):
            credentials.register("dave", "second-pass")
        # The original account is untouched.
        assert credentials.login("dave", "first-pass").account.username == "dave"

    def test_usernames_are_case_sensitive(self, credentials: CredentialService) -> None:
        lower = credentials.register("erin", "pw-one")
        upper = credentials.register("Erin", "pw-two")
        assert lower.account.id != upper.account.id
        with pytest.raises(InvalidCredentials):
            credentials.login("ERIN", "pw-one")

    @pytest.mark.parametrize(
        ("username", "password"),
        [("", "pw"), ("   ", "pw"), ("frank", ""), ("", "")],
    )
    def test_register_requires_both_fields(self, credentials: CredentialService, username, password) -> None:
        with pytest.raises(MissingFields):
            credentials.register(username, password)


class TestLoginFailures:
    def test_wrong_password_and_unknown_user_fail_alike(self, credentials: CredentialService) -> None:
        credentials.register("grace", "right-pass")

        with pytest.raises(InvalidCredentials) as wrong_pw:
            credentials.login("grace", "wrong-pass")
        with pytest.raises(InvalidCredentials) as unknown:
            credentials.login("nobody", "right-pass")

        assert type(wrong_pw.value) is type(unknown.value)
        assert wrong_pw.value.code == unknown.value.code == "invalid_credentials"
        assert str(wrong_pw.value) == str(unknown.value)

    def test_empty_login_input(self, credentials: CredentialService) -> None:
        with pytest.raises(InvalidCredentials):
            credentials.login("", "")

    @pytest.mark.parametrize(("username", "password"), [("", "pw"), ("someone", ""), ("", "")])
    def test_empty_login_input_pays_for_bcrypt_check(
        self, credentials: CredentialService, monkeypatch: pytest.MonkeyPatch, username: str, password: str
    ) -> None:
        checked: list[str] = []
        real_verify = service_module.verify_password

        def _recording_verify(plain: str, hashed: str) -> bool:
            checked.append(hashed)
            return real_verify(plain, hashed)

        monkeypatch.setattr(service_module, "verify_password", _recording_verify)

        with pytest.raises(InvalidCredentials):
            credentials.login(username, password)
        assert len(checked) == 1

    def test_secrets_never_logged(self, credentials: CredentialService, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG)
        result = credentials.register("heidi", "very-secret-pass")
        credentials.login("heidi", "very-secret-pass")
        with pytest.raises(InvalidCredentials):
            credentials.login("heidi", "another-secret")

        assert "very-secret-pass" not in caplog.text
        assert "another-secret" not in caplog.text
        assert result.token not in caplog.text
        assert "$2b$" not in caplog.text


class TestVerifyToken:
    def test_missing(self, credentials: CredentialService) -> None:
        with pytest.raises(MissingToken):
            credentials.verify_token(None)

    def test_expired(self, credentials: CredentialService, secret_key: str) -> None:
        account_id = credentials.register("ivan", "pw-ivan").account.id
        stale = create_access_token(
            account_id,
            secret_key,
            issued_at=datetime.now(timezone.utc) - timedelta(days=7, minutes=1),
        )
        with pytest.raises(ExpiredToken):
            credentials.verify_token(stale)

    def test_token_from_other_deployment(self, credentials: CredentialService) -> None:
        foreign = create_access_token("abc", "a-completely-different-key-0123456789")
        with pytest.raises(InvalidToken):
            credentials.verify_token(foreign)

    def test_tampered(self, credentials: CredentialService) -> None:
        token = credentials.register("judy", "pw-judy").token
        with pytest.raises(InvalidToken):
            credentials.verify_token(token[: len(token) // 2])


class TestConcurrentRegistration:
    def test_exactly_one_winner(self, tmp_path, credentials_for) -> None:
        """Racing registrations for one username: one account, the rest DuplicateUsername."""
        engine = create_store_engine(f"sqlite:///{tmp_path / 'race.db'}", timeout=10)
        service = credentials_for(engine)

        def attempt(i: int):
            try:
                return service.register("contested", f"pw-{i}")
            except DuplicateUsername as exc:
                return exc

        try:
            with ThreadPoolExecutor(max_workers=6) as pool:
                outcomes = list(pool.map(attempt, range(6)))
        finally:
            engine.dispose()

        winners = [o for o in outcomes if isinstance(o, AuthResult)]
        losers = [o for o in outcomes if isinstance(o, DuplicateUsername)]
        assert len(winners) == 1
        assert len(losers) == 5


class TestStoreFailures:
    def test_register_store_unavailable(self, credentials: CredentialService, engine) -> None:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE accounts"))
        with pytest.raises(StoreUnavailable) as excinfo:
            credentials.register("kim", "pw-kim")
        assert excinfo.value.__cause__ is None
        assert "accounts" not in str(excinfo.value)

    def test_login_store_unavailable(self, credentials: CredentialService, engine) -> None:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE accounts"))
        with pytest.raises(StoreUnavailable):
            credentials.login("kim", "pw-kim")
