"""User management endpoints (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends
from supabase import Client

from dental_api.auth.credentials import CredentialStore, get_credentials
from dental_api.auth.dependencies import CurrentUser, require_admin
from dental_api.db.client import get_supabase
from dental_api.users.schemas import CreateUserRequest, UpdateUserRequest
from dental_api.users.service import add_user, delete_user, edit_user, get_user, list_users_with_email

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/all", summary="List users", description="All active profiles merged with their auth email, newest first.")
async def list_all(
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
):
    return list_users_with_email(db, credentials)


@router.post("/add", status_code=201, summary="Create a user", description="Create an auth user and its profile.")
async def add(
    body: CreateUserRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
):
    user = add_user(db, credentials, admin.id, body.model_dump())
    return {"message": "User created successfully", "user": user}


@router.put("/edit/{user_id}", summary="Edit a user")
async def edit(
    user_id: UUID,
    body: UpdateUserRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
    credentials: CredentialStore = Depends(get_credentials),
):
    user = edit_user(db, credentials, admin.id, str(user_id), body.model_dump(exclude_unset=True))
    return {"message": "User updated successfully", "user": user}


@router.delete("/delete/{user_id}", summary="Soft delete a user")
async def delete(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    user = delete_user(db, admin.id, str(user_id))
    return {"message": "User soft-deleted successfully", "user": user}


@router.get("/{user_id}", summary="Get a user", description="Fetch a profile by id, including soft-deleted ones.")
async def get(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    return {"user": get_user(db, str(user_id))}
