"""In-app notifications stored in the notifications table."""

import logging

from supabase import Client

from dental_api.db.models import NOTIFICATIONS

logger = logging.getLogger(__name__)


def notify_user(db: Client, user_id: str, title: str, message: str) -> None:
    """Queue a notification for a user. Push delivery happens outside this service."""
    try:
        db.table(NOTIFICATIONS).insert({
            "user_id": user_id,
            "title": title,
            "message": message,
            "is_read": False,
        }).execute()
    except Exception:
        logger.exception("Failed to create notification for user %s", user_id)
