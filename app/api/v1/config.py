"""
System configuration endpoints (office location and geofence)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.core.deps import get_db, get_current_user, get_config_service, require_roles
from app.models.employee import Employee, Role
from app.schemas.config import OfficeLocationUpdate
from app.services.result import ServiceResult
from app.services.system_config_service import SystemConfigService

router = APIRouter()


@router.get("")
async def all_configs(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
    config: SystemConfigService = Depends(get_config_service),
):
    return to_response(ServiceResult.ok("System configuration", config.get_all_configs(db)))


@router.get("/office-location")
async def office_location(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
    config: SystemConfigService = Depends(get_config_service),
):
    """Office name and, when configured, its geofence"""
    office = config.get_office_coordinates(db)
    data = {"name": config.get_office_location(db), "latitude": None, "longitude": None, "radius": None}
    if office is not None:
        data.update(office.model_dump())
    return to_response(ServiceResult.ok("Office location", data))


@router.put("/office-location")
async def update_office_location(
    payload: OfficeLocationUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
    config: SystemConfigService = Depends(get_config_service),
):
    entry = config.set_office_coordinates(
        db,
        name=payload.name,
        latitude=payload.latitude,
        longitude=payload.longitude,
        radius=payload.radius,
        actor_id=current_user.id,
    )
    return to_response(ServiceResult.ok("Office location updated", entry.model_dump()))
