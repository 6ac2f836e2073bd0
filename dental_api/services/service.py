"""Business logic for services and categories: uniqueness, linking, grouping, audit."""

from typing import Any

from supabase import Client

from dental_api.db.models import SERVICE_CATEGORIES, SERVICES, UNCATEGORIZED_NAME
from dental_api.services import repository
from dental_api.utils.activity_log import log_activity
from dental_api.utils.errors import ConflictError, NotFoundError, ValidationError

SERVICE_FIELDS = (
    "name", "description", "price", "allow_installment", "installment_times",
    "installment_interval", "custom_interval_days",
)
# Columns an update may set back to null
NULLABLE_SERVICE_FIELDS = {"description", "custom_interval_days"}


def _name_key(row: dict) -> str:
    return (row.get("name") or "").casefold()


def group_services(categories: list[dict], services: list[dict], links: list[dict]) -> list[dict]:
    """Bucket services under their category.

    Each service lands in the bucket of its first link that points at a known
    category, otherwise in a trailing "No Category" bucket that is only emitted
    when something falls into it. Categories and the services inside each
    bucket are ordered by name, case-insensitively.
    """
    buckets: dict[Any, list[dict]] = {c["id"]: [] for c in categories}
    category_of: dict[Any, Any] = {}
    for link in links:
        if link["category_id"] in buckets:
            category_of.setdefault(link["service_id"], link["category_id"])

    uncategorized: list[dict] = []
    for service in services:
        category_id = category_of.get(service["id"])
        if category_id is None:
            uncategorized.append(service)
        else:
            buckets[category_id].append(service)

    grouped = [
        {"id": c["id"], "name": c["name"], "services": sorted(buckets[c["id"]], key=_name_key)}
        for c in sorted(categories, key=_name_key)
    ]
    if uncategorized:
        grouped.append({"id": None, "name": UNCATEGORIZED_NAME, "services": sorted(uncategorized, key=_name_key)})
    return grouped


# --- Services ---

def list_services(db: Client) -> list[dict]:
    services = repository.list_active(db, SERVICES)
    active_categories = {c["id"] for c in repository.list_active(db, SERVICE_CATEGORIES)}
    category_of: dict[Any, Any] = {}
    for link in repository.list_links(db):
        if link["category_id"] in active_categories:
            category_of.setdefault(link["service_id"], link["category_id"])
    return [{**s, "category_id": category_of.get(s["id"])} for s in sorted(services, key=_name_key)]


def grouped_services(db: Client) -> list[dict]:
    categories = repository.list_active(db, SERVICE_CATEGORIES)
    services = repository.list_active(db, SERVICES)
    links = repository.list_links(db)
    return group_services(categories, services, links)


def get_service(db: Client, service_id: str) -> dict:
    service = repository.get_by_id(db, SERVICES, service_id, include_deleted=True)
    if not service:
        raise NotFoundError("Service not found")
    return {**service, "category_id": repository.category_of(db, service_id)}


def _require_category(db: Client, category_id: str) -> None:
    if not repository.get_by_id(db, SERVICE_CATEGORIES, category_id):
        raise NotFoundError("Category not found")


def create_service(db: Client, admin_id: str, data: dict[str, Any]) -> dict:
    category_id = data.pop("category_id", None)
    if repository.name_taken(db, SERVICES, data["name"]):
        raise ConflictError("A service with this name already exists")
    if category_id is not None:
        _require_category(db, category_id)

    service = repository.insert(db, SERVICES, {k: data[k] for k in SERVICE_FIELDS if k in data})
    if category_id is not None:
        repository.set_service_category(db, service["id"], category_id)

    log_activity(db, admin_id, "create_service", SERVICES, service["id"], f"Created service {service['name']}")
    return {**service, "category_id": category_id}


def update_service(db: Client, admin_id: str, service_id: str, data: dict[str, Any]) -> dict:
    existing = repository.get_by_id(db, SERVICES, service_id)
    if not existing:
        raise NotFoundError("Service not found")

    change_category = "category_id" in data
    category_id = data.pop("category_id", None)
    updates = {
        k: v for k, v in data.items()
        if k in SERVICE_FIELDS and (v is not None or k in NULLABLE_SERVICE_FIELDS)
    }

    if "name" in updates and repository.name_taken(db, SERVICES, updates["name"], exclude_id=service_id):
        raise ConflictError("A service with this name already exists")
    if change_category and category_id is not None:
        _require_category(db, category_id)

    interval = updates.get("installment_interval", existing.get("installment_interval"))
    if interval == "custom" and not updates.get("custom_interval_days", existing.get("custom_interval_days")):
        raise ValidationError("custom_interval_days is required when installment_interval is 'custom'")

    previous_category = repository.category_of(db, service_id)
    service = repository.update(db, SERVICES, service_id, updates) if updates else existing
    if change_category:
        repository.set_service_category(db, service_id, category_id)
    else:
        category_id = previous_category

    log_activity(
        db, admin_id, "update_service", SERVICES, service_id,
        f"Updated service {existing['name']}",
        undo_data={**existing, "category_id": previous_category},
    )
    return {**service, "category_id": category_id}


def delete_service(db: Client, admin_id: str, service_id: str) -> dict:
    existing = repository.get_by_id(db, SERVICES, service_id)
    if not existing:
        raise NotFoundError("Service not found or already deleted")

    previous_category = repository.category_of(db, service_id)
    deleted = repository.soft_delete(db, SERVICES, service_id)
    repository.set_service_category(db, service_id, None)

    log_activity(
        db, admin_id, "delete_service", SERVICES, service_id,
        f"Deleted service {existing['name']}",
        undo_data={**existing, "category_id": previous_category},
    )
    return deleted


# --- Categories ---

def list_categories(db: Client) -> list[dict]:
    return sorted(repository.list_active(db, SERVICE_CATEGORIES), key=_name_key)


def get_category(db: Client, category_id: str) -> dict:
    category = repository.get_by_id(db, SERVICE_CATEGORIES, category_id, include_deleted=True)
    if not category:
        raise NotFoundError("Category not found")
    return category


def create_category(db: Client, admin_id: str, name: str) -> dict:
    if repository.name_taken(db, SERVICE_CATEGORIES, name):
        raise ConflictError("A category with this name already exists")
    category = repository.insert(db, SERVICE_CATEGORIES, {"name": name})
    log_activity(db, admin_id, "create_category", SERVICE_CATEGORIES, category["id"], f"Created category {name}")
    return category


def update_category(db: Client, admin_id: str, category_id: str, name: str) -> dict:
    existing = repository.get_by_id(db, SERVICE_CATEGORIES, category_id)
    if not existing:
        raise NotFoundError("Category not found")
    if repository.name_taken(db, SERVICE_CATEGORIES, name, exclude_id=category_id):
        raise ConflictError("A category with this name already exists")

    category = repository.update(db, SERVICE_CATEGORIES, category_id, {"name": name})
    log_activity(
        db, admin_id, "update_category", SERVICE_CATEGORIES, category_id,
        f"Renamed category {existing['name']} to {name}",
        undo_data=existing,
    )
    return category


def delete_category(db: Client, admin_id: str, category_id: str) -> dict:
    existing = repository.get_by_id(db, SERVICE_CATEGORIES, category_id)
    if not existing:
        raise NotFoundError("Category not found or already deleted")

    linked = [l["service_id"] for l in repository.list_links(db) if l["category_id"] == category_id]
    deleted = repository.soft_delete(db, SERVICE_CATEGORIES, category_id)
    repository.unlink_category(db, category_id)

    log_activity(
        db, admin_id, "delete_category", SERVICE_CATEGORIES, category_id,
        f"Deleted category {existing['name']}",
        undo_data={**existing, "service_ids": linked},
    )
    return deleted
