"""Data access layer for user profiles."""

from typing import Any

from supabase import Client

from dental_api.db.models import USER_COLUMNS, USERS
from dental_api.utils.validators import first_or_none, utcnow_iso


def insert(db: Client, data: dict[str, Any]) -> dict:
    now = utcnow_iso()
    row = {"is_deleted": False, "created_at": now, "updated_at": now, **data}
    result = db.table(USERS).insert(row).execute()
    return result.data[0]


def get_by_id(db: Client, user_id: str, include_deleted: bool = False) -> dict | None:
    query = db.table(USERS).select(USER_COLUMNS).eq("id", user_id)
    if not include_deleted:
        query = query.eq("is_deleted", False)
    return first_or_none(query.execute().data)


def get_active_by_username(db: Client, username: str) -> dict | None:
    result = (
        db.table(USERS)
        .select(USER_COLUMNS)
        .eq("username", username)
        .eq("is_deleted", False)
        .execute()
    )
    return first_or_none(result.data)


def username_taken(db: Client, username: str, exclude_id: str | None = None) -> bool:
    query = db.table(USERS).select("id").eq("username", username).eq("is_deleted", False)
    if exclude_id is not None:
        query = query.neq("id", exclude_id)
    return bool(query.execute().data)


def list_active(db: Client) -> list[dict]:
    result = db.table(USERS).select(USER_COLUMNS).eq("is_deleted", False).execute()
    return result.data


def update(db: Client, user_id: str, data: dict[str, Any]) -> dict | None:
    result = db.table(USERS).update({**data, "updated_at": utcnow_iso()}).eq("id", user_id).execute()
    return first_or_none(result.data)


def soft_delete(db: Client, user_id: str) -> dict | None:
    now = utcnow_iso()
    return update(db, user_id, {"is_deleted": True, "deleted_at": now})


def hard_delete(db: Client, user_id: str) -> None:
    """Only used to compensate a failed account creation."""
    db.table(USERS).delete().eq("id", user_id).execute()


def set_fcm_token(db: Client, user_id: str, fcm_token: str) -> None:
    db.table(USERS).update({"fcm_token": fcm_token}).eq("id", user_id).execute()
