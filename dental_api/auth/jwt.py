"""Access token creation/verification and opaque refresh tokens."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from dental_api.config.settings import Settings

REFRESH_TOKEN_BYTES = 64


def admin_token_lifetime(settings: Settings) -> timedelta:
    return timedelta(hours=settings.JWT_ADMIN_TOKEN_EXPIRE_HOURS)


def app_token_lifetime(settings: Settings) -> timedelta:
    return timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(
    settings: Settings,
    user_id: str,
    username: str,
    usertype: str,
    expires_delta: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "usertype": usertype,
        "type": "access",
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def verify_token(settings: Settings, token: str) -> dict:
    """Decode and validate a JWT. Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
