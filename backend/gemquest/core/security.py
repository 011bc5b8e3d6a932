# gemquest/core/security.py
"""
Credential manager.
Handles password hashing, single-use token generation, expiry computation and
the signed session artifact (JWT) returned by login.
"""
import datetime as dt
import secrets

import jwt  # PyJWT
from passlib.context import CryptContext

from gemquest.config import settings
from gemquest.core.errors import CredentialFailure

# Password hashing context
# Argon2 is a modern, memory-hard password hashing algorithm; passlib salts every hash
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

# JWT configuration
JWT_SECRET = settings.jwt_secret  # Secret key for JWT signing (use strong secret in production)
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes  # Token expiration time in minutes
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

# Single-use tokens: 32 random bytes, hex encoded (256 bits of entropy)
TOKEN_BYTES = 32


def utc_now() -> dt.datetime:
    """Current UTC datetime with timezone information."""
    return dt.datetime.now(dt.timezone.utc)


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)

    Raises:
        CredentialFailure: If the hashing backend is unavailable or misconfigured
    """
    try:
        return pwd_context.hash(plain)
    except (ValueError, TypeError, RuntimeError) as exc:
        raise CredentialFailure(f"Password hashing failed: {exc}") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a stored hash.

    Uses the hash algorithm's own comparison, which is constant-time.

    Returns:
        True if password matches, False otherwise

    Raises:
        CredentialFailure: If the stored hash is malformed or uses an unknown
        scheme. This is a data/configuration fault, not a failed login.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError) as exc:
        raise CredentialFailure(f"Password verification failed: {exc}") from exc


def generate_token() -> str:
    """Cryptographically secure opaque token for confirmation/reset links."""
    return secrets.token_hex(TOKEN_BYTES)


def expiry_from_now(hours: int, now: dt.datetime | None = None) -> dt.datetime:
    """Absolute expiry instant `hours` after `now` (defaults to the current UTC time)."""
    return (now or utc_now()) + dt.timedelta(hours=hours)


def create_access_token(user_id: str) -> str:
    """
    Create a JWT access token for user authentication.

    Only the principal id is embedded. Roles are resolved per request so that
    role and group changes take effect on the very next call.

    Token payload includes:
        - sub: Subject (user ID)
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = utc_now()
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
