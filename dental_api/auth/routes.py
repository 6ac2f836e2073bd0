"""Auth endpoints: website/app login, register, password flows, refresh, logout."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from supabase import Client

from dental_api.auth.credentials import CredentialStore, get_credentials
from dental_api.auth.jwt import (
    admin_token_lifetime,
    app_token_lifetime,
    create_access_token,
    create_refresh_token,
    hash_refresh_token,
)
from dental_api.config.settings import Settings, get_settings
from dental_api.db.client import get_supabase
from dental_api.db.models import APP_ROLES, REFRESH_TOKENS, ROLE_ADMIN
from dental_api.users import repository as users_repo
from dental_api.users.service import create_account
from dental_api.utils.errors import AuthError, ForbiddenError, NotFoundError
from dental_api.utils.validators import first_or_none

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# --- Request schemas ---

class LoginRequest(BaseModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)

class AppLoginRequest(LoginRequest):
    fcm_token: str | None = Field(default=None, alias="fcmToken")

    model_config = {"populate_by_name": True}

class RegisterRequest(BaseModel):
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)
    usertype: Literal["patient", "dentist"]
    firstname: str = Field(min_length=1)
    lastname: str = Field(min_length=1)

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    access_token: str = Field(min_length=1)
    new_password: str = Field(min_length=6, alias="newPassword")

    model_config = {"populate_by_name": True}

class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, alias="refreshToken")

    model_config = {"populate_by_name": True}

class ChangePasswordRequest(BaseModel):
    user_id: UUID = Field(alias="userId")
    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=6, alias="newPassword")

    model_config = {"populate_by_name": True}


# --- Helpers ---

def _user_summary(user: dict) -> dict:
    return {"id": user["id"], "username": user["username"], "usertype": user["usertype"]}


def _authenticate(db: Client, credentials: CredentialStore, username: str, password: str, roles: set[str]) -> dict:
    """Resolve the profile, enforce the role, then check the password with Supabase Auth."""
    user = users_repo.get_active_by_username(db, username)
    if not user:
        raise AuthError("Invalid username or password")

    # Role gate comes before the password check
    if user["usertype"] not in roles:
        raise ForbiddenError(f"Access denied. {' and '.join(sorted(r.capitalize() + 's' for r in roles))} only.")

    auth_user = credentials.get_user(user["id"])
    if not auth_user or not auth_user.email:
        logger.warning("Profile %s has no linked auth user", user["id"])
        raise AuthError("Invalid username or password")

    if not credentials.verify_password(auth_user.email, password):
        logger.info("Failed login for profile %s", user["id"])
        raise AuthError("Invalid username or password")
    return user


def _store_refresh_token(db: Client, settings: Settings, user_id: str, token: str) -> None:
    now = datetime.now(timezone.utc)
    db.table(REFRESH_TOKENS).insert({
        "token_hash": hash_refresh_token(token),
        "user_id": user_id,
        "created_at": now.isoformat(),
        "expires_at": (now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)).isoformat(),
    }).execute()


def _is_expired(row: dict) -> bool:
    expires_at = row.get("expires_at")
    if not expires_at:
        return False
    expires = datetime.fromisoformat(expires_at)
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires <= datetime.now(timezone.utc)


# --- Endpoints ---

@router.post("/website/login", summary="Admin website login", description="Admins only. Returns a 24h access token.")
async def website_login(
    body: LoginRequest,
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
    settings: Settings = Depends(get_settings),
):
    user = _authenticate(db, credentials, body.username, body.password, {ROLE_ADMIN})
    token = create_access_token(
        settings, user["id"], user["username"], user["usertype"], admin_token_lifetime(settings),
    )
    return {"message": "Admin login successful", "token": token, "user": _user_summary(user)}


@router.post("/app/login", summary="App login", description="Patients and dentists. Returns an access token and a refresh token.")
async def app_login(
    body: AppLoginRequest,
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
    settings: Settings = Depends(get_settings),
):
    user = _authenticate(db, credentials, body.username, body.password, APP_ROLES)

    if body.fcm_token:
        users_repo.set_fcm_token(db, user["id"], body.fcm_token)

    access_token = create_access_token(
        settings, user["id"], user["username"], user["usertype"], app_token_lifetime(settings),
    )
    refresh_token = create_refresh_token()
    _store_refresh_token(db, settings, user["id"], refresh_token)

    return {
        "message": "Login successful",
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "user": _user_summary(user),
    }


@router.post("/app/register", status_code=201, summary="Register a patient or dentist")
async def register(
    body: RegisterRequest,
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
):
    profile = body.model_dump(exclude={"email", "password"})
    user = create_account(db, credentials, body.email, body.password, profile)
    return {"message": "User registered successfully", "user": user}


@router.post("/forgot-password", summary="Send a password reset email")
async def forgot_password(
    body: ForgotPasswordRequest,
    credentials: CredentialStore = Depends(get_credentials),
    settings: Settings = Depends(get_settings),
):
    if not credentials.find_user_by_email(body.email):
        raise NotFoundError("Email not found")
    credentials.send_password_reset(body.email, settings.PASSWORD_RESET_REDIRECT_URL or None)
    return {"message": "Password reset email sent successfully."}


@router.post("/reset-password", summary="Set a new password using a reset-link token")
async def reset_password(
    body: ResetPasswordRequest,
    credentials: CredentialStore = Depends(get_credentials),
):
    auth_user = credentials.user_from_access_token(body.access_token)
    if not auth_user:
        raise AuthError("Invalid or expired token.", status_code=400)
    credentials.update_password(auth_user.id, body.new_password)
    return {"message": "Password updated successfully."}


@router.post("/refresh-token", summary="Exchange a refresh token for a new access token")
async def refresh(
    body: RefreshRequest,
    db: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    token_hash = hash_refresh_token(body.refresh_token)
    stored = first_or_none(
        db.table(REFRESH_TOKENS).select("*").eq("token_hash", token_hash).execute().data
    )
    if not stored:
        raise ForbiddenError("Invalid refresh token")

    if _is_expired(stored):
        db.table(REFRESH_TOKENS).delete().eq("token_hash", token_hash).execute()
        raise ForbiddenError("Refresh token expired")

    user = users_repo.get_by_id(db, stored["user_id"])
    if not user:
        raise NotFoundError("User not found")

    access_token = create_access_token(
        settings, user["id"], user["username"], user["usertype"], app_token_lifetime(settings),
    )
    return {"accessToken": access_token}


@router.post("/logout", summary="Logout", description="Delete the refresh token. Unknown tokens are ignored.")
async def logout(body: RefreshRequest, db: Client = Depends(get_supabase)):
    db.table(REFRESH_TOKENS).delete().eq("token_hash", hash_refresh_token(body.refresh_token)).execute()
    return {"message": "Logged out successfully"}


@router.patch("/change-password", summary="Change password with the current password")
async def change_password(
    body: ChangePasswordRequest,
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
):
    user_id = str(body.user_id)
    user = users_repo.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    auth_user = credentials.get_user(user_id)
    if not auth_user or not auth_user.email:
        raise NotFoundError("User not found")

    if not credentials.verify_password(auth_user.email, body.current_password):
        raise AuthError("Current password incorrect", status_code=400)

    credentials.update_password(user_id, body.new_password)
    return {"message": "Password changed successfully"}
