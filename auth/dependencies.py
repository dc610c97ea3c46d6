"""
auth/dependencies.py -- FastAPI Depends() helper that turns a request into an Identity.

Token sources, checked in priority order:
  1. x-auth-token header -- the header the browser client sends.
  2. Authorization: Bearer <token> header -- generic API clients.

The token string is handed to CredentialService.verify_token() unchanged.
Failures propagate as core failure kinds (MissingToken, InvalidToken,
ExpiredToken); api/main.py maps them to 401 responses.

Layer rule: no imports from api/ or diary/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.service import CredentialService


def _extract_token(request: Request) -> str | None:
    token = request.headers.get("x-auth-token")
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def get_identity(request: Request) -> Identity:
    """Require a valid session token and return the acting Identity.

    Use as a FastAPI dependency:
        @router.get("/diaries")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    credentials: CredentialService = request.app.state.credentials
    return credentials.verify_token(_extract_token(request))
