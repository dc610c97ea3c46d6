"""
auth/service.py -- CredentialService: registration, login and token checks.

The service owns the credential rules; AccountStore owns the SQL. Every store
call runs inside core.db.store_guard(), so a broken or locked database
surfaces as StoreUnavailable rather than a driver exception.

Usage:
    service = CredentialService(AccountStore(engine), secret_key=settings.secret_key)
    result = service.register("alice", "correct horse")
    identity = service.verify_token(result.token)

Nothing here logs a password, a hash, or a token.

Layer rule: no imports from api/ or diary/.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError

from auth.models import Account, AuthResult, Identity, PublicAccount
from auth.store import AccountStore
from auth.tokens import create_access_token, decode_access_token, dummy_hash, hash_password, verify_password
from core.db import store_guard
from core.errors import DuplicateUsername, InvalidCredentials, MissingFields

logger = logging.getLogger("privatediary.auth")


class CredentialService:
    def __init__(self, store: AccountStore, secret_key: str, bcrypt_rounds: int = 10) -> None:
        self._store = store
        self._secret_key = secret_key
        self._bcrypt_rounds = bcrypt_rounds

    def register(self, username: str, password: str) -> AuthResult:
        """Create an account and return it with a fresh session token.

        There is deliberately no "does this username exist?" query first.
        The UNIQUE constraint decides: of two concurrent registrations for
        the same name, the second insert fails and becomes DuplicateUsername.
        """
        if not username or not username.strip() or not password:
            raise MissingFields()

        account = Account(
            id=uuid.uuid4().hex,
            username=username,
            secret_hash=hash_password(password, self._bcrypt_rounds),
        )
        with store_guard("register"):
            try:
                account = self._store.create_account(account)
            except IntegrityError:
                logger.info("Registration rejected: username already taken")
                raise DuplicateUsername() from None

        logger.info("Account registered (id=%s)", account.id)
        return self._issue(account)

    def login(self, username: str, password: str) -> AuthResult:
        """Check a username/password pair and return a fresh session token.

        Unknown usernames still pay for a bcrypt check against the dummy hash
        so both failure paths cost the same and report the same kind. Empty
        input takes the same dummy check.
        """
        if not username or not password:
            verify_password(password or "", dummy_hash(self._bcrypt_rounds))
            raise InvalidCredentials()

        with store_guard("login"):
            account = self._store.get_by_username(username)

        if account is None:
            verify_password(password, dummy_hash(self._bcrypt_rounds))
            logger.info("Login failed")
            raise InvalidCredentials()
        if not verify_password(password, account.secret_hash):
            logger.info("Login failed (id=%s)", account.id)
            raise InvalidCredentials()

        logger.info("Login succeeded (id=%s)", account.id)
        return self._issue(account)

    def verify_token(self, token: str | None) -> Identity:
        """Return the Identity a session token proves.

        Signature and expiry are checked locally; the store is not consulted.
        Raises MissingToken, InvalidToken, or ExpiredToken.
        """
        return Identity(account_id=decode_access_token(token, self._secret_key))

    def _issue(self, account: Account) -> AuthResult:
        return AuthResult(
            account=PublicAccount(id=account.id, username=account.username, created_at=account.created_at),
            token=create_access_token(account.id, self._secret_key),
        )
