"""
Admin attendance endpoints: pending approvals, approve, reject, re-enable and bypass.
Every state change is written to the audit log by the service.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.core.deps import get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.attendance import (
    ApproveRequest,
    RejectRequest,
    ReEnableRequest,
    BypassAttendanceRequest,
)
from app.services import attendance_service as svc
from app.services.result import ServiceResult

router = APIRouter()


@router.get("/pending")
async def pending_approvals(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    """Checked-in field engineer attendance waiting for approval"""
    items = svc.list_pending_approvals(db)
    return to_response(ServiceResult.ok(f"{len(items)} pending approval(s)", {"items": items, "total": len(items)}))


@router.post("/{attendance_id}/approve")
async def approve(
    attendance_id: int,
    payload: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    payload = payload or ApproveRequest()
    return to_response(svc.approve(db, attendance_id, current_user.id, reason=payload.reason))


@router.post("/{attendance_id}/reject")
async def reject(
    attendance_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    return to_response(svc.reject(db, attendance_id, current_user.id, reason=payload.reason))


@router.post("/{attendance_id}/re-enable")
async def re_enable(
    attendance_id: int,
    payload: Optional[ReEnableRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    """Unlock check-in after too many failed attempts, or reopen a rejected day"""
    payload = payload or ReEnableRequest()
    return to_response(
        svc.re_enable(
            db,
            attendance_id,
            current_user.id,
            reason=payload.reason,
            restore_present=payload.restore_present,
        )
    )


@router.post("/bypass")
async def bypass(
    payload: BypassAttendanceRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    """
    Record today's attendance for an employee without attempt or geofence checks.
    Requires a reason; always audited.
    """
    result = svc.bypass_create(
        db,
        employee_id=payload.employee_id,
        status=payload.status,
        location=payload.location,
        admin_id=current_user.id,
        reason=payload.reason,
    )
    return to_response(result, success_status=status.HTTP_201_CREATED)
