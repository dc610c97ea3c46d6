"""
api/routes/v1/auth.py -- Registration and login REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create account; returns token + public fields
  POST /api/v1/auth/login      -- password login; returns token + public fields

Both routes are public. Failure kinds raised by CredentialService
(MissingFields, DuplicateUsername, InvalidCredentials, StoreUnavailable)
propagate to the DiaryError handler in api/main.py.

Security:
  Wrong username and wrong password produce the same invalid_credentials
  error; CredentialService also equalizes their timing.
  Cache-Control: no-store on every token-bearing response.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import AuthResponse, CredentialsRequest
from auth.service import CredentialService

router = APIRouter()


def _token_response(body: AuthResponse, status_code: int) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=body.model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Create an account and sign the new user in."""
    credentials: CredentialService = request.app.state.credentials
    result = credentials.register(body.username, body.password)
    return _token_response(AuthResponse.from_result(result), 201)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with username and password and return a fresh token."""
    credentials: CredentialService = request.app.state.credentials
    result = credentials.login(body.username, body.password)
    return _token_response(AuthResponse.from_result(result), 200)
