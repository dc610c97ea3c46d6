"""
diary/store.py -- Owner-scoped persistence for diary entries.

Uses SQLAlchemy Core (not ORM) so the DiaryEntry dataclass in diary/models.py
remains the authoritative domain representation. The engine is passed in by
the process entry point; swapping SQLite for PostgreSQL is a connection
string change.

Pattern: Repository + Data Mapper. DiaryStore is the repository; _row_to_entry
is the mapper.

Ownership (IDOR guard):
  Every operation takes the acting Identity as its first argument and every
  statement that touches a single entry filters on BOTH id and owner_id. An
  entry that exists but belongs to someone else is reported exactly like an
  entry that does not exist (NotFound), so ids leak nothing across owners.

Ordering:
  list_entries() is newest-first by created_at. The internal `seq` column
  (autoincrement, never exposed) breaks ties between entries created in the
  same microsecond: later insert sorts first.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = DiaryStore(engine)
    entry = store.create_entry(identity, "Dear diary...")
    entries = store.list_entries(identity)
    store.update_entry(identity, entry.id, "Dear diary, again")
    store.delete_entry(identity, entry.id)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from auth.models import Identity
from core.db import store_guard
from core.errors import EmptyContent, NotFound
from diary.models import DiaryEntry

logger = logging.getLogger("privatediary.diary")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_entries = Table(
    "diary_entries",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("owner_id", String(32), nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Index("ix_diary_entries_owner_created", "owner_id", "created_at"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    # Fixed microsecond precision keeps the ISO strings lexically sortable.
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _require_identity(owner) -> str:
    """Return the owner's account id, refusing anything that is not an Identity."""
    if not isinstance(owner, Identity):
        raise TypeError(f"diary operations require an Identity, got {type(owner).__name__}")
    return owner.account_id


def _require_content(content) -> None:
    if not isinstance(content, str) or not content.strip():
        raise EmptyContent()


def _owned(owner_id: str, entry_id: str):
    return (_entries.c.id == entry_id) & (_entries.c.owner_id == owner_id)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DiaryStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create_entry(self, owner: Identity, content: str) -> DiaryEntry:
        """Store a new entry for owner and return it, generated id included.

        Content is stored exactly as given; whitespace-only content is rejected
        with EmptyContent.
        """
        owner_id = _require_identity(owner)
        _require_content(content)
        entry = DiaryEntry(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            content=content,
            created_at=_now_iso(),
        )
        with store_guard("create_entry"):
            with self.engine.begin() as conn:
                conn.execute(
                    _entries.insert().values(
                        id=entry.id,
                        owner_id=entry.owner_id,
                        content=entry.content,
                        created_at=entry.created_at,
                    )
                )
        logger.info("Diary entry created (id=%s owner=%s)", entry.id, owner_id)
        return entry

    def list_entries(self, owner: Identity) -> list[DiaryEntry]:
        """Return all of owner's entries, most recent first. Never fails on valid input."""
        owner_id = _require_identity(owner)
        with store_guard("list_entries"):
            with self.engine.connect() as conn:
                rows = conn.execute(
                    _entries.select()
                    .where(_entries.c.owner_id == owner_id)
                    .order_by(_entries.c.created_at.desc(), _entries.c.seq.desc())
                ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def get_entry(self, owner: Identity, entry_id: str) -> DiaryEntry:
        """Fetch one of owner's entries. Raises NotFound otherwise."""
        owner_id = _require_identity(owner)
        with store_guard("get_entry"):
            with self.engine.connect() as conn:
                row = conn.execute(_entries.select().where(_owned(owner_id, entry_id))).fetchone()
        if row is None:
            raise NotFound()
        return _row_to_entry(row)

    def update_entry(self, owner: Identity, entry_id: str, content: str) -> DiaryEntry:
        """Replace the content of one of owner's entries and return the result.

        The content check runs before any store access. id and created_at are
        left untouched.
        """
        owner_id = _require_identity(owner)
        _require_content(content)
        with store_guard("update_entry"):
            with self.engine.begin() as conn:
                result = conn.execute(_entries.update().where(_owned(owner_id, entry_id)).values(content=content))
                if result.rowcount == 0:
                    raise NotFound()
                row = conn.execute(_entries.select().where(_owned(owner_id, entry_id))).fetchone()
        logger.info("Diary entry updated (id=%s owner=%s)", entry_id, owner_id)
        return _row_to_entry(row)

    def delete_entry(self, owner: Identity, entry_id: str) -> None:
        """Permanently remove one of owner's entries. Raises NotFound otherwise."""
        owner_id = _require_identity(owner)
        with store_guard("delete_entry"):
            with self.engine.begin() as conn:
                result = conn.execute(_entries.delete().where(_owned(owner_id, entry_id)))
                if result.rowcount == 0:
                    raise NotFound()
        logger.info("Diary entry deleted (id=%s owner=%s)", entry_id, owner_id)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_entry(row) -> DiaryEntry:
    return DiaryEntry(
        id=row.id,
        owner_id=row.owner_id,
        content=row.content,
        created_at=row.created_at,
    )
