"""Auth dependencies for FastAPI route injection."""

from dataclasses import dataclass

import jwt as pyjwt
from fastapi import Depends, Request

from dental_api.auth.jwt import verify_token
from dental_api.config.settings import Settings, get_settings
from dental_api.db.models import ROLE_ADMIN, VALID_ROLES
from dental_api.utils.errors import AuthError, ForbiddenError, InvalidTokenError


@dataclass
class CurrentUser:
    id: str
    username: str
    usertype: str


def _extract_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer ") and auth[7:].strip():
        return auth[7:].strip()
    return None


async def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> CurrentUser:
    """FastAPI dependency: authenticate via Bearer JWT and attach the identity to the request."""
    token = _extract_bearer_token(request)
    if not token:
        raise AuthError("Missing authentication credentials")

    try:
        payload = verify_token(settings, token)
    except pyjwt.ExpiredSignatureError:
        raise InvalidTokenError("Token has expired")
    except pyjwt.InvalidTokenError:
        raise InvalidTokenError("Invalid token")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError("Invalid token type")

    user = CurrentUser(
        id=payload["sub"],
        username=payload.get("username", ""),
        usertype=payload.get("usertype", ""),
    )
    request.state.user = user
    return user


def require_role(*roles: str):
    """Dependency factory: the verified token's role must be one of ``roles``."""
    allowed = set(roles) or VALID_ROLES

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.usertype not in allowed:
            raise ForbiddenError(f"Access denied. Required role: {', '.join(sorted(allowed))}")
        return user

    return dependency


require_admin = require_role(ROLE_ADMIN)
