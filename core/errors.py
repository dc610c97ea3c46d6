"""
core/errors.py -- Failure kinds raised by the PrivateDiary core.

Every failure the core can produce is a DiaryError subclass carrying a stable
machine-readable `code`. Callers branch on the class (or the code); the
message is a safe default for logs and is never built from secrets or raw
store errors.

Mapping a failure kind to a transport status is the caller's job -- see
api/main.py for the HTTP mapping.
"""


class DiaryError(Exception):
    """Base class for all recoverable core failures."""

    code = "diary_error"
    message = "The operation failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class MissingFields(DiaryError):
    code = "missing_fields"
    message = "Username and password are required."


class DuplicateUsername(DiaryError):
    code = "duplicate_username"
    message = "That username is already taken."


class InvalidCredentials(DiaryError):
    # Shared by "no such user" and "wrong password" so usernames cannot be
    # enumerated through login responses.
    code = "invalid_credentials"
    message = "Invalid username or password."


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class MissingToken(DiaryError):
    code = "missing_token"
    message = "Authentication token is required."


class InvalidToken(DiaryError):
    code = "invalid_token"
    message = "Authentication token is invalid."


class ExpiredToken(DiaryError):
    code = "expired_token"
    message = "Authentication token has expired."


# ---------------------------------------------------------------------------
# Diary entries
# ---------------------------------------------------------------------------


class EmptyContent(DiaryError):
    code = "empty_content"
    message = "Diary content must not be empty."


class NotFound(DiaryError):
    # Also raised for entries owned by someone else.
    code = "not_found"
    message = "Diary entry not found."


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class StoreUnavailable(DiaryError):
    code = "store_unavailable"
    message = "The data store is unavailable."
