"""
api/main.py -- FastAPI application entry point for PrivateDiary.

Thin HTTP adapter around the core: routes extract raw fields, call
CredentialService / DiaryStore, and the DiaryError handler below maps each
failure kind to a status code. No business rule lives in this package.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware  -- adds CORS headers for allowed browser origins
  2. log_requests    -- one log line per request with latency

Lifespan owns the store: it builds the engine from DATABASE_URL on startup,
hands it to the stores, and disposes it on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.diaries import router as diaries_router
from auth.service import CredentialService
from auth.store import AccountStore
from core.config import get_settings
from core.db import create_store_engine, ping
from core.errors import (
    DiaryError,
    DuplicateUsername,
    EmptyContent,
    ExpiredToken,
    InvalidCredentials,
    InvalidToken,
    MissingFields,
    MissingToken,
    NotFound,
    StoreUnavailable,
)
from diary.store import DiaryStore

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("privatediary.api")

# ---------------------------------------------------------------------------
# Failure kind -> HTTP status
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type[DiaryError], int] = {
    MissingFields: 400,
    EmptyContent: 400,
    InvalidCredentials: 401,
    MissingToken: 401,
    InvalidToken: 401,
    ExpiredToken: 401,
    NotFound: 404,
    DuplicateUsername: 409,
    StoreUnavailable: 503,
}


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine and core components; dispose the engine on shutdown."""
    settings = get_settings()
    logger.info("PrivateDiary API starting up")
    engine = create_store_engine(settings.database_url, timeout=settings.store_timeout_seconds)
    app.state.engine = engine
    app.state.credentials = CredentialService(
        AccountStore(engine),
        secret_key=settings.secret_key,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    app.state.diaries = DiaryStore(engine)
    logger.info("Store initialized (%s)", engine.url.get_backend_name())

    yield

    engine.dispose()
    logger.info("PrivateDiary API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="PrivateDiary API",
    description="Private, owner-only diary entries behind username/password sessions.",
    version=_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:5000", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "x-auth-token"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(diaries_router, prefix="/api/v1", tags=["Diaries"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(DiaryError)
async def diary_error_handler(request: Request, exc: DiaryError) -> JSONResponse:
    """Map a core failure kind to its status code; the body carries only the kind."""
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=str(exc))).model_dump(),
    )
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the request body fails validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the server log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication required.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, current version, and store reachability."""
    database = "ok" if ping(request.app.state.engine) else "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=_VERSION,
        components={"app": "ok", "database": database},
    )
