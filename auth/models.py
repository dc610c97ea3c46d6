"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these classes own the domain shape.

Layer rule: no imports from api/ or diary/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A registered individual.

    secret_hash is the bcrypt hash of the password. It never leaves the auth
    package: callers receive a PublicAccount instead.

    id is generated by the service before insert; created_at is stamped by
    the store.
    """

    id: str
    username: str
    secret_hash: str
    created_at: str = ""  # ISO 8601


@dataclass(frozen=True)
class PublicAccount:
    """The account fields that may be shown to the account holder."""

    id: str
    username: str
    created_at: str = ""


@dataclass(frozen=True)
class AuthResult:
    """Returned by register and login: who you are plus a fresh session token."""

    account: PublicAccount
    token: str


@dataclass(frozen=True)
class Identity:
    """The acting account, proven by a verified session token.

    Produced only by CredentialService.verify_token(). Diary operations take
    one as their first argument -- there is no ambient "current user".
    """

    account_id: str
