"""Data access layer for services, categories and their links."""

from typing import Any

from supabase import Client

from dental_api.db.models import SERVICE_CATEGORY_LINKS
from dental_api.utils.validators import first_or_none, ilike_exact, utcnow_iso


def insert(db: Client, table: str, data: dict[str, Any]) -> dict:
    now = utcnow_iso()
    row = {"is_deleted": False, "created_at": now, "updated_at": now, **data}
    result = db.table(table).insert(row).execute()
    return result.data[0]


def get_by_id(db: Client, table: str, record_id: str, include_deleted: bool = False) -> dict | None:
    query = db.table(table).select("*").eq("id", record_id)
    if not include_deleted:
        query = query.eq("is_deleted", False)
    return first_or_none(query.execute().data)


def list_active(db: Client, table: str) -> list[dict]:
    return db.table(table).select("*").eq("is_deleted", False).execute().data


def name_taken(db: Client, table: str, name: str, exclude_id: str | None = None) -> bool:
    """Case-insensitive name match among rows that are not soft-deleted."""
    query = db.table(table).select("id, name").ilike("name", ilike_exact(name)).eq("is_deleted", False)
    if exclude_id is not None:
        query = query.neq("id", exclude_id)
    # PostgREST treats "*" as "%" in patterns; keep exact matches only
    wanted = name.lower()
    return any((row.get("name") or "").lower() == wanted for row in query.execute().data)


def update(db: Client, table: str, record_id: str, data: dict[str, Any]) -> dict | None:
    result = db.table(table).update({**data, "updated_at": utcnow_iso()}).eq("id", record_id).execute()
    return first_or_none(result.data)


def soft_delete(db: Client, table: str, record_id: str) -> dict | None:
    return update(db, table, record_id, {"is_deleted": True, "deleted_at": utcnow_iso()})


# --- Links ---

def list_links(db: Client) -> list[dict]:
    return db.table(SERVICE_CATEGORY_LINKS).select("service_id, category_id").execute().data


def category_of(db: Client, service_id: str) -> str | None:
    result = db.table(SERVICE_CATEGORY_LINKS).select("category_id").eq("service_id", service_id).execute()
    row = first_or_none(result.data)
    return row["category_id"] if row else None


def set_service_category(db: Client, service_id: str, category_id: str | None) -> None:
    """Replace the service's category. A service has at most one category."""
    db.table(SERVICE_CATEGORY_LINKS).delete().eq("service_id", service_id).execute()
    if category_id is not None:
        db.table(SERVICE_CATEGORY_LINKS).insert({"service_id": service_id, "category_id": category_id}).execute()


def unlink_category(db: Client, category_id: str) -> None:
    db.table(SERVICE_CATEGORY_LINKS).delete().eq("category_id", category_id).execute()

