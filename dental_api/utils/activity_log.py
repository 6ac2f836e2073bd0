"""Admin activity logging (audit trail with undo snapshots)."""

import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from supabase import Client

from dental_api.db.models import ACTIVITY_LOGS

logger = logging.getLogger(__name__)


def log_activity(
    db: Client,
    admin_id: str,
    action: str,
    table_name: str,
    record_id: str,
    description: str,
    undo_data: dict[str, Any] | None = None,
) -> None:
    """Append an activity log row. Failures are logged and never fail the request."""
    try:
        db.table(ACTIVITY_LOGS).insert({
            "admin_id": admin_id,
            "action": action,
            "table_name": table_name,
            "record_id": str(record_id),
            "description": description,
            "undo_data": jsonable_encoder(undo_data) if undo_data is not None else None,
        }).execute()
    except Exception:
        logger.exception("Activity log failed: action=%s table=%s record=%s", action, table_name, record_id)
