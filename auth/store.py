"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as diary/store.py).
AccountStore is the repository; _row_to_account is the mapper. Service and
route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) is enforced by the database. create_account() does not
  look before it leaps: a duplicate surfaces as IntegrityError, which is the
  only reliable signal when two registrations for the same name race.

This repository does not translate store errors. CredentialService wraps its
calls in core.db.store_guard() so failures surface as StoreUnavailable.

Layer rule: no imports from api/ or diary/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from auth.models import Account

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("secret_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore(engine)
        store.create_account(Account(id=uuid4().hex, username="alice", secret_hash=h))
        account = store.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        _metadata.create_all(self.engine)

    def create_account(self, account: Account) -> Account:
        """Insert a new account and return it with created_at filled in.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        created_at = _now_iso()
        with self.engine.begin() as conn:
            conn.execute(
                _accounts.insert().values(
                    id=account.id,
                    username=account.username,
                    secret_hash=account.secret_hash,
                    created_at=created_at,
                )
            )
        return Account(
            id=account.id,
            username=account.username,
            secret_hash=account.secret_hash,
            created_at=created_at,
        )

    def get_by_username(self, username: str) -> Account | None:
        """Look up an account by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        secret_hash=row.secret_hash,
        created_at=row.created_at,
    )
