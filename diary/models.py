"""
diary/models.py -- Domain dataclass for diary entries.

Pure data container with zero logic. Ownership rules and ordering live in
diary/store.py.
"""

from dataclasses import dataclass


@dataclass
class DiaryEntry:
    """One journal entry, visible only to its owner.

    owner_id and created_at never change after insert; only content is
    mutable.
    """

    id: str
    owner_id: str
    content: str
    created_at: str  # ISO 8601, set by store on insert
