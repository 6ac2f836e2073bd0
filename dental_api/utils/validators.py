"""Shared validators and query helpers."""

from datetime import datetime, timezone


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ilike_exact(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` performs a case-insensitive equality match."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def first_or_none(rows: list[dict] | None) -> dict | None:
    return rows[0] if rows else None
