"""
Attendance endpoints for the signed-in employee: check-in, check-out, today's status
and remaining check-in attempts.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from app.api.responses import to_response
from app.core.deps import get_db, get_current_user, get_config_service
from app.models.employee import Employee, Role
from app.schemas.attendance import CheckInRequest
from app.services import attendance_service
from app.services.system_config_service import SystemConfigService

router = APIRouter()


def client_ip(request: Request) -> Optional[str]:
    """Client IP: X-Forwarded-For (first hop) when behind proxy, else request.client.host."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


@router.post("/check-in")
async def check_in(
    payload: CheckInRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    config: SystemConfigService = Depends(get_config_service),
):
    """
    Daily check-in. Coordinates are validated against the office geofence
    (in-office staff) or today's assigned site (field engineers).
    Field engineer check-ins wait for admin approval.
    """
    result = attendance_service.check_in(
        db,
        current_user.id,
        config_service=config,
        location=payload.location,
        latitude=payload.latitude,
        longitude=payload.longitude,
        photo=payload.photo,
        ip_address=client_ip(request),
        device_info=payload.device_info or request.headers.get("user-agent"),
    )
    return to_response(result)


@router.post("/check-out")
async def check_out(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return to_response(attendance_service.check_out(db, current_user.id))


@router.get("/today")
async def today(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Today's attendance for the signed-in employee"""
    return to_response(attendance_service.get_today_status(db, current_user.id))


@router.get("/attempts/{employee_id}")
async def attempts(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Remaining check-in attempts today. Employees may only see their own."""
    if current_user.id != employee_id and current_user.role != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return to_response(attendance_service.remaining_attempts(db, employee_id))
