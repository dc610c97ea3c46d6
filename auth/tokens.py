"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). The cost factor comes
       from Settings.bcrypt_rounds and is passed in by the caller. bcrypt only
       reads the first 72 bytes of a password; newer bcrypt releases raise on
       longer input instead of truncating, so the truncation is done here
       explicitly and identically for hashing and verification.

  Dummy hash: dummy_hash() returns a hash computed once per cost factor. Login
       verifies against it when the username does not exist, so the response
       time does not reveal whether an account exists.

  Session tokens: python-jose with HS256. A token carries the account id as
       the `sub` claim plus `iat` and `exp`. The lifetime is fixed at 7 days;
       tokens are not renewable and there is no revocation list. Decoding
       raises a core failure kind instead of returning None so callers can
       tell a missing token from a bad or expired one.

Layer rule: no imports from api/ or diary/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.errors import ExpiredToken, InvalidToken, MissingToken

_ALGORITHM = "HS256"
_BCRYPT_MAX_BYTES = 72

TOKEN_LIFETIME = timedelta(days=7)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = 10) -> str:
    """Hash used for timing equalization when the username is unknown."""
    return hash_password("privatediary_timing_dummy", rounds)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(account_id: str, secret_key: str, issued_at: datetime | None = None) -> str:
    """Encode a signed session token bound to account_id.

    Args:
        account_id: Account.id the token proves.
        secret_key: HS256 signing key (Settings.secret_key).
        issued_at:  Issue instant; defaults to now. Expiry is always
                    issued_at + TOKEN_LIFETIME.
    """
    issued = issued_at or datetime.now(timezone.utc)
    expire = issued + TOKEN_LIFETIME
    payload = {
        "sub": account_id,
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str | None, secret_key: str) -> str:
    """Verify a session token and return the account id it is bound to.

    Raises:
        MissingToken: token is None or blank.
        ExpiredToken: signature is valid but exp has passed.
        InvalidToken: anything else -- bad structure, bad signature, or a
                      missing subject claim.
    """
    if token is None or not token.strip():
        raise MissingToken()
    try:
        payload = jwt.decode(token.strip(), secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredToken() from None
    except JWTError:
        raise InvalidToken() from None
    account_id = payload.get("sub")
    if not isinstance(account_id, str) or not account_id:
        raise InvalidToken()
    if "exp" not in payload:
        raise InvalidToken()
    return account_id
