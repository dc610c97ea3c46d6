"""
api/routes/v1/diaries.py -- Diary entry routes for the PrivateDiary REST API.

Routes:
  GET    /diaries              -- list own entries, newest first
  POST   /diaries              -- create entry
  GET    /diaries/{entry_id}   -- fetch one own entry
  PUT    /diaries/{entry_id}   -- replace content of one own entry
  DELETE /diaries/{entry_id}   -- delete one own entry

Every handler receives the Identity from get_identity() and passes it to
DiaryStore as the first argument. There is no other way to reach the store
from here, so an unauthenticated request never touches entry data.
"""

from fastapi import APIRouter, Depends, Request

from api.models import DiaryContent, DiaryEntryResponse, MessageResponse
from auth.dependencies import get_identity
from auth.models import Identity
from diary.store import DiaryStore

router = APIRouter()


def _store(request: Request) -> DiaryStore:
    return request.app.state.diaries


@router.get("/diaries", response_model=list[DiaryEntryResponse])
def list_diaries(request: Request, identity: Identity = Depends(get_identity)) -> list[DiaryEntryResponse]:
    entries = _store(request).list_entries(identity)
    return [DiaryEntryResponse.from_entry(e) for e in entries]


@router.post("/diaries", response_model=DiaryEntryResponse, status_code=201)
def create_diary(
    request: Request,
    body: DiaryContent,
    identity: Identity = Depends(get_identity),
) -> DiaryEntryResponse:
    entry = _store(request).create_entry(identity, body.content)
    return DiaryEntryResponse.from_entry(entry)


@router.get("/diaries/{entry_id}", response_model=DiaryEntryResponse)
def get_diary(request: Request, entry_id: str, identity: Identity = Depends(get_identity)) -> DiaryEntryResponse:
    """Return one entry. Someone else's entry is reported as 404, same as a missing one."""
    entry = _store(request).get_entry(identity, entry_id)
    return DiaryEntryResponse.from_entry(entry)


@router.put("/diaries/{entry_id}", response_model=DiaryEntryResponse)
def update_diary(
    request: Request,
    entry_id: str,
    body: DiaryContent,
    identity: Identity = Depends(get_identity),
) -> DiaryEntryResponse:
    entry = _store(request).update_entry(identity, entry_id, body.content)
    return DiaryEntryResponse.from_entry(entry)


@router.delete("/diaries/{entry_id}", response_model=MessageResponse)
def delete_diary(request: Request, entry_id: str, identity: Identity = Depends(get_identity)) -> MessageResponse:
    _store(request).delete_entry(identity, entry_id)
    return MessageResponse(message="Diary entry deleted.")
