"""
Admin endpoints for field engineers' daily site assignments
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.core.deps import get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.daily_location import DailyLocationAssign
from app.services import daily_location_service
from app.services.result import ServiceResult
from app.core.errors import ErrorKind
from app.utils.datetime_utils import local_date

router = APIRouter()


@router.put("")
async def assign(
    payload: DailyLocationAssign,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    """Create or replace the site a field engineer checks in at for the day"""
    result = daily_location_service.assign_daily_location(
        db,
        employee_id=payload.employee_id,
        day=payload.date or local_date(),
        actor_id=current_user.id,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        radius=payload.radius,
    )
    return to_response(result)


@router.get("/{employee_id}")
async def get_assignment(
    employee_id: int,
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    location = daily_location_service.get_daily_location(db, employee_id, day or local_date())
    if location is None:
        return to_response(ServiceResult.fail(ErrorKind.NOT_FOUND, "No site assigned for this day"))
    return to_response(
        ServiceResult.ok("Daily location", daily_location_service.daily_location_to_dict(location))
    )
