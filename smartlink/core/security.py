"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from smartlink.core.config import settings
from smartlink.schemas.auth import TokenClaims

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


class TokenConfigurationError(RuntimeError):
    """Raised when tokens cannot be signed or verified because JWT_SECRET is unset."""


def _secret() -> str:
    secret = settings.jwt_secret_value()
    if secret is None:
        raise TokenConfigurationError("JWT_SECRET is not configured.")
    return secret


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors.
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


def burn_password_check(plain_password: str) -> None:
    """Spend one bcrypt verification so unknown accounts take as long to reject as wrong passwords."""
    verify_password(plain_password, _dummy_hash())


def create_access_token(sub: str | int, role: str) -> str:
    """Create a JWT access token with sub (user id), role, iat and exp."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(
        payload,
        _secret(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims:
    """
    Decode and validate a JWT; return its subject id and role.

    Raises jwt.PyJWTError on bad signature, expiry, or a malformed claim set.
    """
    payload = jwt.decode(
        token,
        _secret(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
    role = payload.get("role")
    if role not in ROLES:
        raise jwt.InvalidTokenError("Token role claim is missing or unknown")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise jwt.InvalidTokenError("Token subject is not a user id") from e
    return TokenClaims(sub=user_id, role=role)
