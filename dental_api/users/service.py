"""Business logic for user accounts spanning Supabase Auth and the users table."""

import logging
from typing import Any

from supabase import Client

from dental_api.auth.credentials import CredentialStore
from dental_api.db.models import USERS
from dental_api.users import repository
from dental_api.users.schemas import ProfileFields
from dental_api.utils.activity_log import log_activity
from dental_api.utils.errors import ConflictError, NotFoundError
from dental_api.utils.notifications import notify_user
from dental_api.utils.saga import Saga

logger = logging.getLogger(__name__)

PRIVATE_FIELDS = {"password", "fcm_token"}
NULLABLE_PROFILE_FIELDS = set(ProfileFields.model_fields)


def public_profile(row: dict) -> dict:
    return {k: v for k, v in row.items() if k not in PRIVATE_FIELDS}


def create_account(
    db: Client,
    credentials: CredentialStore,
    email: str,
    password: str,
    profile: dict[str, Any],
) -> dict:
    """Create the Supabase Auth user and its profile row, undoing both on failure."""
    if repository.username_taken(db, profile["username"]):
        raise ConflictError("Username already taken")
    if credentials.find_user_by_email(email):
        raise ConflictError("Email already registered")

    with Saga(f"create account {profile['username']}") as saga:
        auth_user = credentials.create_user(email, password)
        saga.add_compensation(credentials.delete_user, auth_user.id)

        user = repository.insert(db, {"id": auth_user.id, **profile})
        saga.add_compensation(repository.hard_delete, db, auth_user.id)

    logger.info("Created account %s (%s)", user["id"], user["usertype"])
    return public_profile({**user, "email": auth_user.email})


def list_users_with_email(db: Client, credentials: CredentialStore) -> list[dict]:
    profiles = repository.list_active(db)
    auth_users = {u.id: u for u in credentials.list_users()}

    merged = []
    for profile in profiles:
        auth_user = auth_users.get(str(profile["id"]))
        merged.append({
            **public_profile(profile),
            "email": auth_user.email if auth_user else None,
            "created_at_auth": auth_user.created_at if auth_user else None,
        })
    merged.sort(key=lambda u: u.get("created_at") or "", reverse=True)
    return merged


def get_user(db: Client, user_id: str) -> dict:
    user = repository.get_by_id(db, user_id, include_deleted=True)
    if not user:
        raise NotFoundError("User not found")
    return public_profile(user)


def add_user(db: Client, credentials: CredentialStore, admin_id: str, data: dict[str, Any]) -> dict:
    email = data.pop("email")
    password = data.pop("password")
    user = create_account(db, credentials, email, password, data)

    log_activity(
        db, admin_id, "create_user", USERS, user["id"],
        f"Admin created user: {user['firstname']} {user['lastname']} ({email})",
    )
    notify_user(db, user["id"], "Welcome", f"Your {user['usertype']} account has been created.")
    return user


def edit_user(db: Client, credentials: CredentialStore, admin_id: str, user_id: str, data: dict[str, Any]) -> dict:
    existing = repository.get_by_id(db, user_id)
    if not existing:
        raise NotFoundError("User not found or deleted")

    data = {k: v for k, v in data.items() if v is not None or k in NULLABLE_PROFILE_FIELDS}
    email = data.pop("email", None)
    if "username" in data and data["username"] != existing["username"]:
        if repository.username_taken(db, data["username"], exclude_id=user_id):
            raise ConflictError("Username already taken")

    if email is not None:
        credentials.update_email(user_id, email)

    updated = repository.update(db, user_id, data) if data else existing

    log_activity(
        db, admin_id, "update_user", USERS, user_id,
        f"Updated user {existing['firstname']} {existing['lastname']}",
        undo_data=existing,
    )
    notify_user(db, user_id, "Profile updated", "Your profile details were updated by the clinic.")
    result = public_profile(updated)
    if email is not None:
        result["email"] = email
    return result


def delete_user(db: Client, admin_id: str, user_id: str) -> dict:
    existing = repository.get_by_id(db, user_id)
    if not existing:
        raise NotFoundError("User not found or already deleted")

    deleted = repository.soft_delete(db, user_id)

    log_activity(
        db, admin_id, "delete_user", USERS, user_id,
        f"Deleted user {existing['firstname']} {existing['lastname']}",
        undo_data=existing,
    )
    return public_profile(deleted)
