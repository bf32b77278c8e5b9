"""
Admin notification endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.core.deps import get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.notification import NotificationOut
from app.services import notification_service

router = APIRouter()


@router.get("", response_model=List[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    return notification_service.list_notifications(db, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    return to_response(notification_service.mark_read(db, notification_id))
