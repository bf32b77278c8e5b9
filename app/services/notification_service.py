"""
Admin notification sink.
Notifications are fire-and-forget: a failure to store one is logged and never
fails the operation that triggered it.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ErrorKind
from app.models.notification import Notification
from app.services.result import ServiceResult
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json

_log = logging.getLogger(__name__)


def create_admin_notification(
    db: Session,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    """Store an admin notification. Call after the triggering change is committed."""
    try:
        notification = Notification(
            type=type,
            title=title,
            message=message,
            data=sanitize_for_json(data) if data else None,
            is_read=False,
            created_at=now_utc(),
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        _log.info("Admin notification created: type=%s id=%s", type, notification.id)
        return notification
    except SQLAlchemyError as e:
        db.rollback()
        _log.error("Failed to create admin notification type=%s: %s", type, e)
        return None


def list_notifications(db: Session, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(db: Session, notification_id: int) -> ServiceResult:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.commit()
    return ServiceResult.ok("Notification marked as read", {"id": notification.id, "is_read": True})
