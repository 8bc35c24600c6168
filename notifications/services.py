"""
NOTIFICATIONS App - Notification writer

Status updates and driver assignments notify users through these helpers.
Those writes are best-effort: a failed insert is logged and never undoes
the change that triggered it.
"""

import logging
from typing import Iterable, List, Optional

from django.db import DatabaseError, transaction

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)


def build_notification(
    user,
    title: str,
    message: str,
    notification_type: str = NotificationType.SYSTEM,
    role: Optional[str] = None,
    data: Optional[dict] = None
) -> Notification:
    """Unsaved Notification; `role` defaults to the recipient's role."""
    return Notification(
        user=user,
        title=title,
        message=message,
        type=notification_type,
        role=role or user.role,
        data=data or {},
    )


def create_notification(user, title: str, message: str, **kwargs) -> Notification:
    """Write one notification. Database errors propagate."""
    notification = build_notification(user, title, message, **kwargs)
    notification.save()
    logger.info(f"[NOTIFY] {notification.type} -> user {str(user.pk)[:8]}: {title}")
    return notification


def notify_best_effort(notifications: Iterable[Notification]) -> List[Notification]:
    """
    Write several notifications in one savepoint.

    Returns the saved notifications, or an empty list when the insert
    failed (the failure is logged, not raised).
    """
    notifications = list(notifications)
    if not notifications:
        return []

    try:
        with transaction.atomic():
            saved = Notification.objects.bulk_create(notifications)
    except DatabaseError as e:
        logger.error(
            f"[NOTIFY] Failed to write {len(notifications)} notification(s): {e}"
        )
        return []

    logger.info(f"[NOTIFY] Wrote {len(saved)} notification(s)")
    return saved
