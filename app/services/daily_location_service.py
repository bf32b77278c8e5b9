"""
Daily site assignments for field engineers. The assignment for a day is the
geofence a field engineer's check-in is validated against.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import ErrorKind
from app.models.daily_location import DailyLocation
from app.models.employee import Employee, Role
from app.services.audit_service import log_audit
from app.services.result import ServiceResult
from app.utils.geolocation import get_coordinates_from_location, has_valid_coordinates

_log = logging.getLogger(__name__)

COARSE_GRANULARITIES = ("city", "region", "country")


def daily_location_to_dict(location: DailyLocation) -> dict:
    return {
        "id": location.id,
        "employee_id": location.employee_id,
        "date": location.date,
        "address": location.address,
        "latitude": float(location.latitude) if location.latitude is not None else None,
        "longitude": float(location.longitude) if location.longitude is not None else None,
        "radius": location.radius,
    }


def get_daily_location(db: Session, employee_id: int, day: date) -> Optional[DailyLocation]:
    return (
        db.query(DailyLocation)
        .filter(DailyLocation.employee_id == employee_id, DailyLocation.date == day)
        .first()
    )


def assign_daily_location(
    db: Session,
    *,
    employee_id: int,
    day: date,
    actor_id: int,
    address: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius: Optional[int] = None,
) -> ServiceResult:
    """
    Create or replace a field engineer's site for the day.

    When only an address is given it is forward geocoded once. A coarse match
    (city/region/country) without an explicit radius takes the provider's
    bounding-box estimate as its radius. If geocoding fails the address is
    stored without coordinates and check-in is not geofenced for that day.
    """
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    if employee.role != Role.FIELD_ENGINEER.value:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Site assignments are only for field engineers")
    if not address and not has_valid_coordinates(latitude, longitude):
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, "Provide an address or valid coordinates")

    if not has_valid_coordinates(latitude, longitude) and address:
        geocode = get_coordinates_from_location(address)
        if geocode is not None:
            latitude, longitude = geocode.latitude, geocode.longitude
            if radius is None and geocode.granularity in COARSE_GRANULARITIES:
                radius = geocode.estimated_radius_meters
            _log.info(
                "Geocoded site for employee_id=%s: granularity=%s radius=%s",
                employee_id, geocode.granularity, radius,
            )
        else:
            latitude = longitude = None

    location = get_daily_location(db, employee_id, day)
    if location is None:
        location = DailyLocation(employee_id=employee_id, date=day)
        db.add(location)
    location.address = address
    location.latitude = latitude
    location.longitude = longitude
    location.radius = radius
    location.assigned_by = actor_id
    db.commit()
    db.refresh(location)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="DAILY_LOCATION_ASSIGN",
        entity_type="daily_locations",
        entity_id=location.id,
        meta=daily_location_to_dict(location),
    )
    return ServiceResult.ok("Daily location assigned", daily_location_to_dict(location))
