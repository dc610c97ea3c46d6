"""
API request and response models for PrivateDiary REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
diary/models.py, which own the internal domain representation. Route handlers
map between the two.

Request models accept empty strings on purpose: emptiness rules belong to the
core (MissingFields, EmptyContent), not to transport validation, so the same
failure kind reaches every caller.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AuthResult
from diary.models import DiaryEntry

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /auth/register and POST /auth/login."""

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class AccountInfo(BaseModel):
    """Public account fields returned after register and login."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str


class AuthResponse(BaseModel):
    """Token plus public account fields. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: AccountInfo

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            token=result.token,
            user=AccountInfo(id=result.account.id, username=result.account.username),
        )


# ---------------------------------------------------------------------------
# Diaries
# ---------------------------------------------------------------------------


class DiaryContent(BaseModel):
    """Request body for POST /diaries and PUT /diaries/{entry_id}."""

    content: str = Field(default="", max_length=20000)


class DiaryEntryResponse(BaseModel):
    """One diary entry as returned to its owner."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    created_at: str

    @classmethod
    def from_entry(cls, entry: DiaryEntry) -> "DiaryEntryResponse":
        return cls(id=entry.id, content=entry.content, created_at=entry.created_at)


class MessageResponse(BaseModel):
    """Plain confirmation message, used by DELETE /diaries/{entry_id}."""

    model_config = ConfigDict(frozen=True)

    message: str
