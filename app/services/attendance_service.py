"""
Daily attendance service: check-in/check-out, admin approval, attempt lockout,
admin re-enable and the audited admin bypass.

One Attendance row exists per employee per local calendar day (settings.APP_TIMEZONE).
Field engineers' check-ins wait for admin approval; in-office staff are
NOT_REQUIRED. Every public operation returns a ServiceResult; business-rule
failures are never raised.

The task service reads and creates attendance only through
get_attendance_for_day and record_implicit_clock_in.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.constants import (
    LOCKED_REASON_MAX_ATTEMPTS,
    NOTIFICATION_ATTENDANCE_APPROVAL_REQUEST,
    NOTIFICATION_ATTENDANCE_CLOCK_OUT,
)
from app.core.errors import ErrorKind
from app.models.attendance import Attendance, AttendanceStatus, ApprovalStatus, AttendanceSource
from app.models.employee import Employee, Role, ATTENDANCE_ROLES
from app.services import notification_service
from app.services.audit_service import log_audit
from app.services.daily_location_service import get_daily_location
from app.services.result import ServiceResult
from app.services.system_config_service import SystemConfigService
from app.utils.datetime_utils import now_utc, local_date, to_local, iso_local, minutes_between
from app.utils.geolocation import (
    calculate_distance_meters,
    get_human_readable_location,
    has_valid_coordinates,
)

_log = logging.getLogger(__name__)

FIELD_LOCATION_FALLBACK = "Field Location"


class Geofence(BaseModel):
    name: str
    latitude: float
    longitude: float
    radius: int


def attendance_to_dict(attendance: Attendance) -> dict:
    return {
        "attendance_id": attendance.id,
        "employee_id": attendance.employee_id,
        "date": attendance.date.isoformat(),
        "clock_in": iso_local(attendance.clock_in),
        "clock_out": iso_local(attendance.clock_out),
        "status": attendance.status,
        "approval_status": attendance.approval_status,
        "needs_approval": attendance.approval_status == ApprovalStatus.PENDING.value,
        "attempt_count": attendance.attempt_count,
        "locked": attendance.locked,
        "locked_reason": attendance.locked_reason,
        "location": attendance.location,
        "source": attendance.source,
        "approved_by": attendance.approved_by,
        "approved_at": iso_local(attendance.approved_at),
        "rejected_by": attendance.rejected_by,
        "rejected_at": iso_local(attendance.rejected_at),
        "approval_reason": attendance.approval_reason,
    }


def _initial_approval(employee: Employee) -> str:
    if employee.role == Role.FIELD_ENGINEER.value:
        return ApprovalStatus.PENDING.value
    return ApprovalStatus.NOT_REQUIRED.value


def _arrival_status(now: datetime) -> str:
    """PRESENT up to and including the configured cutoff (local time), LATE after it."""
    local_time = to_local(now).time().replace(tzinfo=None)
    if local_time > settings.late_cutoff_time():
        return AttendanceStatus.LATE.value
    return AttendanceStatus.PRESENT.value


def _get_employee(db: Session, employee_id: int) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.id == employee_id).first()


def get_attendance_for_day(db: Session, employee_id: int, day: date) -> Optional[Attendance]:
    """The employee's attendance row for a local calendar day, if any."""
    return (
        db.query(Attendance)
        .filter(Attendance.employee_id == employee_id, Attendance.date == day)
        .first()
    )


def _insert_or_reload(db: Session, attendance: Attendance) -> Attendance:
    """
    Insert a new daily row. If a concurrent request created the same
    (employee, date) row first, roll back and continue with that row.
    Callers must not have pending changes in the session.
    """
    db.add(attendance)
    try:
        db.flush()
        return attendance
    except IntegrityError:
        db.rollback()
        existing = get_attendance_for_day(db, attendance.employee_id, attendance.date)
        if existing is None:
            raise
        _log.info(
            "Attendance for employee_id=%s date=%s was created concurrently; continuing with id=%s",
            attendance.employee_id, attendance.date, existing.id,
        )
        return existing


def _ensure_attendance(db: Session, employee: Employee, day: date) -> Attendance:
    attendance = get_attendance_for_day(db, employee.id, day)
    if attendance is not None:
        return attendance
    return _insert_or_reload(
        db,
        Attendance(
            employee_id=employee.id,
            date=day,
            status=AttendanceStatus.ABSENT.value,
            approval_status=_initial_approval(employee),
            attempt_count=0,
            locked=False,
            source=AttendanceSource.SELF.value,
        ),
    )


def _resolve_geofence(
    db: Session,
    employee: Employee,
    day: date,
    config_service: SystemConfigService,
) -> Optional[Geofence]:
    """Office geofence for in-office staff, the day's site for field engineers, or None."""
    if not settings.ATTENDANCE_ENFORCE_GEOFENCE:
        return None
    default_radius = settings.DEFAULT_GEOFENCE_RADIUS_METERS
    if employee.role == Role.IN_OFFICE.value:
        office = config_service.get_office_coordinates(db)
        if office is not None:
            return Geofence(
                name=office.name,
                latitude=office.latitude,
                longitude=office.longitude,
                radius=office.radius or default_radius,
            )
    elif employee.role == Role.FIELD_ENGINEER.value:
        site = get_daily_location(db, employee.id, day)
        if site is not None and has_valid_coordinates(site.latitude, site.longitude):
            return Geofence(
                name=site.address or "assigned site",
                latitude=float(site.latitude),
                longitude=float(site.longitude),
                radius=site.radius or default_radius,
            )
    return None


def _check_in_blocker(attendance: Optional[Attendance]) -> Optional[ServiceResult]:
    if attendance is None:
        return None
    if attendance.locked:
        reason = attendance.locked_reason or "Attendance is locked"
        return ServiceResult.fail(
            ErrorKind.LOCKED_ATTENDANCE,
            f"Check-in is locked for today: {reason}. Contact an admin to re-enable check-in.",
            {"locked_reason": attendance.locked_reason},
        )
    if attendance.clock_in is not None:
        if attendance.approval_status == ApprovalStatus.REJECTED.value:
            return ServiceResult.fail(
                ErrorKind.ATTENDANCE_REJECTED,
                "Your attendance was rejected. Please contact admin to re-enable check-in.",
            )
        return ServiceResult.fail(ErrorKind.ALREADY_CHECKED_IN, "You have already checked in today")
    return None


def check_in(
    db: Session,
    employee_id: int,
    *,
    config_service: SystemConfigService,
    location: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    photo: Optional[str] = None,
    ip_address: Optional[str] = None,
    device_info: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """
    Daily check-in. Each call that reaches the attempt counter counts as an
    attempt; once attempts exceed ATTENDANCE_MAX_ATTEMPTS the record is locked
    and marked ABSENT until an admin re-enables it. A successful check-in
    resets the counter.
    """
    now = now or now_utc()
    day = local_date(now)

    employee = _get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    if not employee.is_active:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Employee is not active")
    if employee.role not in ATTENDANCE_ROLES:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Check-in not allowed for this role")

    blocker = _check_in_blocker(get_attendance_for_day(db, employee.id, day))
    if blocker:
        return blocker

    geofence = _resolve_geofence(db, employee, day, config_service)
    has_coords = has_valid_coordinates(latitude, longitude)
    if geofence is not None and not has_coords:
        return ServiceResult.fail(
            ErrorKind.LOCATION_REQUIRED,
            "Location coordinates are required to check in",
        )

    attendance = _ensure_attendance(db, employee, day)
    # Increment in SQL: concurrent attempts serialise on the row lock and each
    # sees the count left by the one before it.
    db.query(Attendance).filter(Attendance.id == attendance.id).update(
        {Attendance.attempt_count: Attendance.attempt_count + 1},
        synchronize_session=False,
    )
    db.refresh(attendance)
    # the row may have been locked or checked in by a concurrent request
    blocker = _check_in_blocker(attendance)
    if blocker:
        db.rollback()
        return blocker

    max_attempts = settings.ATTENDANCE_MAX_ATTEMPTS
    attendance.ip_address = ip_address
    attendance.device_info = device_info
    if has_coords:
        attendance.latitude = latitude
        attendance.longitude = longitude

    if attendance.attempt_count > max_attempts:
        attendance.locked = True
        attendance.locked_reason = LOCKED_REASON_MAX_ATTEMPTS
        attendance.status = AttendanceStatus.ABSENT.value
        db.commit()
        _log.warning(
            "Check-in locked: employee_id=%s date=%s attempts=%s",
            employee.id, day, attendance.attempt_count,
        )
        return ServiceResult.fail(
            ErrorKind.ATTEMPTS_EXHAUSTED,
            f"Maximum check-in attempts ({max_attempts}) exceeded. "
            "Attendance marked ABSENT; contact an admin to re-enable check-in.",
            {"attempt_count": attendance.attempt_count, "max_attempts": max_attempts},
        )

    if geofence is not None:
        distance = round(calculate_distance_meters(latitude, longitude, geofence.latitude, geofence.longitude))
        if distance > geofence.radius:
            db.commit()
            remaining = max(0, max_attempts - attendance.attempt_count)
            _log.info(
                "Check-in outside geofence: employee_id=%s distance=%sm radius=%sm attempt=%s/%s",
                employee.id, distance, geofence.radius, attendance.attempt_count, max_attempts,
            )
            return ServiceResult.fail(
                ErrorKind.OUTSIDE_GEOFENCE,
                f"You are {distance}m from {geofence.name} (allowed {geofence.radius}m). "
                f"Attempt {attendance.attempt_count}/{max_attempts}. {remaining} attempt(s) remaining.",
                {
                    "distance_meters": distance,
                    "radius_meters": geofence.radius,
                    "attempt_count": attendance.attempt_count,
                    "remaining_attempts": remaining,
                },
            )

    if location:
        location_text = location
    elif has_coords:
        location_text = get_human_readable_location(latitude, longitude)
    elif employee.role == Role.IN_OFFICE.value:
        location_text = config_service.get_office_location(db)
    else:
        location_text = FIELD_LOCATION_FALLBACK

    attendance.clock_in = now
    attendance.clock_out = None
    attendance.status = _arrival_status(now)
    attendance.approval_status = _initial_approval(employee)
    attendance.attempt_count = 0
    attendance.location = location_text
    attendance.photo = photo
    attendance.source = AttendanceSource.SELF.value
    db.commit()
    db.refresh(attendance)
    _log.info(
        "Check-in: employee_id=%s attendance_id=%s status=%s approval=%s",
        employee.id, attendance.id, attendance.status, attendance.approval_status,
    )

    if attendance.approval_status == ApprovalStatus.PENDING.value:
        notification_service.create_admin_notification(
            db,
            type=NOTIFICATION_ATTENDANCE_APPROVAL_REQUEST,
            title="Attendance Approval Required",
            message=f"{employee.name} ({employee.employee_code}) has checked in and requires approval.",
            data={
                "attendance_id": attendance.id,
                "employee_id": employee.id,
                "employee_code": employee.employee_code,
                "employee_name": employee.name,
                "check_in_time": iso_local(attendance.clock_in),
                "status": attendance.status,
                "location": attendance.location,
                "photo": attendance.photo,
                "ip_address": attendance.ip_address,
                "device_info": attendance.device_info,
            },
        )

    return ServiceResult.ok("Check-in successful", attendance_to_dict(attendance))


def check_out(db: Session, employee_id: int, now: Optional[datetime] = None) -> ServiceResult:
    """Close the working day: sets clock_out on today's checked-in record."""
    now = now or now_utc()
    day = local_date(now)

    employee = _get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    if employee.role not in ATTENDANCE_ROLES:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Check-out not allowed for this role")

    attendance = get_attendance_for_day(db, employee.id, day)
    if attendance is None:
        return ServiceResult.fail(ErrorKind.NOT_CHECKED_IN, "No attendance record found for today")
    if attendance.locked:
        return ServiceResult.fail(ErrorKind.LOCKED_ATTENDANCE, "Attendance is locked and cannot be modified")
    if attendance.clock_in is None:
        return ServiceResult.fail(ErrorKind.NOT_CHECKED_IN, "You have not checked in today")
    if attendance.clock_out is not None:
        return ServiceResult.fail(ErrorKind.ALREADY_CHECKED_OUT, "You have already checked out today")

    attendance.clock_out = now
    db.commit()
    db.refresh(attendance)
    work_minutes = minutes_between(attendance.clock_in, attendance.clock_out)
    _log.info("Check-out: employee_id=%s attendance_id=%s minutes=%s", employee.id, attendance.id, work_minutes)

    notification_service.create_admin_notification(
        db,
        type=NOTIFICATION_ATTENDANCE_CLOCK_OUT,
        title="Employee Checked Out",
        message=f"{employee.name} ({employee.employee_code}) has checked out.",
        data={
            "attendance_id": attendance.id,
            "employee_id": employee.id,
            "employee_name": employee.name,
            "check_out_time": iso_local(attendance.clock_out),
        },
    )

    data = attendance_to_dict(attendance)
    data["work_minutes"] = work_minutes
    return ServiceResult.ok("Check-out successful", data)


def approve(
    db: Session,
    attendance_id: int,
    admin_id: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """PENDING -> APPROVED. The employee must have checked in."""
    attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
    if not attendance:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attendance not found")
    if attendance.approval_status != ApprovalStatus.PENDING.value:
        return ServiceResult.fail(
            ErrorKind.INVALID_TRANSITION,
            f"Attendance is {attendance.approval_status}; only PENDING attendance can be approved",
        )
    if attendance.clock_in is None:
        return ServiceResult.fail(
            ErrorKind.INVALID_TRANSITION,
            "Employee has not checked in yet; nothing to approve",
        )

    now = now or now_utc()
    attendance.approval_status = ApprovalStatus.APPROVED.value
    attendance.approved_by = admin_id
    attendance.approved_at = now
    attendance.approval_reason = reason
    log_audit(
        db=db,
        actor_id=admin_id,
        action="ATTENDANCE_APPROVE",
        entity_type="attendances",
        entity_id=attendance.id,
        meta={"employee_id": attendance.employee_id, "date": attendance.date, "reason": reason},
        commit=False,
    )
    db.commit()
    db.refresh(attendance)
    _log.info("Attendance approved: attendance_id=%s by admin_id=%s", attendance.id, admin_id)
    return ServiceResult.ok("Attendance approved", attendance_to_dict(attendance))


def reject(
    db: Session,
    attendance_id: int,
    admin_id: int,
    reason: str,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """PENDING -> REJECTED. clock_in is kept; task check-in stays blocked."""
    if not reason or not reason.strip():
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, "Rejection reason is required")

    attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
    if not attendance:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attendance not found")
    if attendance.approval_status != ApprovalStatus.PENDING.value:
        return ServiceResult.fail(
            ErrorKind.INVALID_TRANSITION,
            f"Attendance is {attendance.approval_status}; only PENDING attendance can be rejected",
        )
    if attendance.clock_in is None:
        return ServiceResult.fail(
            ErrorKind.INVALID_TRANSITION,
            "Employee has not checked in yet; nothing to reject",
        )

    now = now or now_utc()
    attendance.approval_status = ApprovalStatus.REJECTED.value
    attendance.rejected_by = admin_id
    attendance.rejected_at = now
    attendance.approval_reason = reason.strip()
    log_audit(
        db=db,
        actor_id=admin_id,
        action="ATTENDANCE_REJECT",
        entity_type="attendances",
        entity_id=attendance.id,
        meta={"employee_id": attendance.employee_id, "date": attendance.date, "reason": attendance.approval_reason},
        commit=False,
    )
    db.commit()
    db.refresh(attendance)
    _log.info("Attendance rejected: attendance_id=%s by admin_id=%s", attendance.id, admin_id)
    return ServiceResult.ok("Attendance rejected", attendance_to_dict(attendance))


def re_enable(
    db: Session,
    attendance_id: int,
    admin_id: int,
    reason: Optional[str] = None,
    restore_present: bool = False,
) -> ServiceResult:
    """
    Admin escape hatch after a lockout or a rejection.

    Unlocks the record and zeroes attempt_count; optionally sets status back
    to PRESENT. A REJECTED record is reopened (approval back to its initial
    state, clock-in cleared) so the employee can check in again. Calling it
    on a record that needs none of this changes nothing.
    """
    attendance = (
        db.query(Attendance)
        .options(joinedload(Attendance.employee))
        .filter(Attendance.id == attendance_id)
        .first()
    )
    if not attendance:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attendance not found")

    before = attendance_to_dict(attendance)
    changed = False

    if attendance.locked or attendance.attempt_count or attendance.locked_reason:
        attendance.locked = False
        attendance.locked_reason = None
        attendance.attempt_count = 0
        changed = True
    if restore_present and attendance.status != AttendanceStatus.PRESENT.value:
        attendance.status = AttendanceStatus.PRESENT.value
        changed = True
    if attendance.approval_status == ApprovalStatus.REJECTED.value:
        attendance.approval_status = _initial_approval(attendance.employee)
        attendance.clock_in = None
        attendance.clock_out = None
        attendance.rejected_by = None
        attendance.rejected_at = None
        attendance.approval_reason = None
        changed = True

    if not changed:
        return ServiceResult.ok("Check-in is already enabled", before)

    log_audit(
        db=db,
        actor_id=admin_id,
        action="ATTENDANCE_RE_ENABLE",
        entity_type="attendances",
        entity_id=attendance.id,
        meta={"reason": reason, "restore_present": restore_present, "before": before},
        commit=False,
    )
    db.commit()
    db.refresh(attendance)
    _log.info("Attendance re-enabled: attendance_id=%s by admin_id=%s", attendance.id, admin_id)
    return ServiceResult.ok("Check-in re-enabled", attendance_to_dict(attendance))


def bypass_create(
    db: Session,
    employee_id: int,
    status: AttendanceStatus,
    location: str,
    admin_id: int,
    reason: str,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """
    Admin-authored attendance for today that skips attempt and geofence checks.
    Creates or overwrites today's row, clears any lock and always writes an
    ATTENDANCE_BYPASS_CREATE audit entry.
    """
    admin = _get_employee(db, admin_id)
    if not admin or admin.role != Role.ADMIN.value:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Only admins can create bypass attendance")
    if not reason or not reason.strip():
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, "A reason is required for bypass attendance")

    employee = _get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    if employee.role not in ATTENDANCE_ROLES:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Attendance is not tracked for this role")

    now = now or now_utc()
    attendance = _ensure_attendance(db, employee, local_date(now))
    before = attendance_to_dict(attendance)

    attendance.status = status.value
    attendance.location = location
    attendance.source = AttendanceSource.ADMIN.value
    attendance.locked = False
    attendance.locked_reason = None
    attendance.attempt_count = 0
    if status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
        attendance.clock_in = attendance.clock_in or now
        if employee.role == Role.FIELD_ENGINEER.value:
            attendance.approval_status = ApprovalStatus.APPROVED.value
            attendance.approved_by = admin.id
            attendance.approved_at = now
            attendance.approval_reason = reason
        else:
            attendance.approval_status = ApprovalStatus.NOT_REQUIRED.value
    else:
        attendance.clock_in = None
        attendance.clock_out = None
        attendance.approval_status = ApprovalStatus.NOT_REQUIRED.value
    log_audit(
        db=db,
        actor_id=admin.id,
        action="ATTENDANCE_BYPASS_CREATE",
        entity_type="attendances",
        entity_id=attendance.id,
        meta={"reason": reason, "before": before, "after": attendance_to_dict(attendance)},
        commit=False,
    )
    db.commit()
    db.refresh(attendance)
    _log.warning(
        "Bypass attendance: employee_id=%s attendance_id=%s status=%s by admin_id=%s",
        employee.id, attendance.id, attendance.status, admin.id,
    )
    return ServiceResult.ok("Bypass attendance recorded", attendance_to_dict(attendance))


def remaining_attempts(db: Session, employee_id: int, now: Optional[datetime] = None) -> ServiceResult:
    employee = _get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")

    max_attempts = settings.ATTENDANCE_MAX_ATTEMPTS
    attendance = get_attendance_for_day(db, employee.id, local_date(now))
    if attendance is None:
        return ServiceResult.ok(
            "No attendance record for today",
            {
                "has_record": False,
                "max_attempts": max_attempts,
                "attempt_count": 0,
                "remaining_attempts": max_attempts,
                "is_locked": False,
                "status": None,
            },
        )

    remaining = 0 if attendance.locked else max(0, max_attempts - attendance.attempt_count)
    return ServiceResult.ok(
        f"{remaining} attempt(s) remaining",
        {
            "has_record": True,
            "max_attempts": max_attempts,
            "attempt_count": attendance.attempt_count,
            "remaining_attempts": remaining,
            "is_locked": attendance.locked,
            "status": attendance.status,
        },
    )


def get_today_status(db: Session, employee_id: int, now: Optional[datetime] = None) -> ServiceResult:
    employee = _get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")

    attendance = get_attendance_for_day(db, employee.id, local_date(now))
    if attendance is None:
        return ServiceResult.ok(
            "No attendance record for today",
            {
                "has_attendance": False,
                "clock_in": None,
                "clock_out": None,
                "is_checked_in": False,
                "approval_status": None,
                "needs_approval": False,
                "is_locked": False,
                "work_minutes": None,
            },
        )

    data = attendance_to_dict(attendance)
    data.update({
        "has_attendance": True,
        "is_checked_in": attendance.clock_in is not None and attendance.clock_out is None,
        "is_locked": attendance.locked,
        "work_minutes": minutes_between(attendance.clock_in, attendance.clock_out),
    })
    return ServiceResult.ok("Attendance status", data)


def list_pending_approvals(db: Session) -> List[dict]:
    """Checked-in records waiting for admin approval, newest first."""
    rows = (
        db.query(Attendance)
        .options(joinedload(Attendance.employee))
        .filter(
            Attendance.approval_status == ApprovalStatus.PENDING.value,
            Attendance.clock_in.isnot(None),
        )
        .order_by(Attendance.clock_in.desc())
        .all()
    )
    items = []
    for attendance in rows:
        item = attendance_to_dict(attendance)
        item["employee_code"] = attendance.employee.employee_code
        item["employee_name"] = attendance.employee.name
        item["photo"] = attendance.photo
        items.append(item)
    return items


def record_implicit_clock_in(
    db: Session,
    employee: Employee,
    now: datetime,
    *,
    location: Optional[str] = None,
    ip_address: Optional[str] = None,
    photo: Optional[str] = None,
) -> Attendance:
    """
    In-office task check-in doubles as the day's clock-in: creates today's row
    with approval NOT_REQUIRED when none exists. Flushes only; the caller
    commits. Must run before the caller makes other changes in the session.
    """
    day = local_date(now)
    attendance = get_attendance_for_day(db, employee.id, day)
    if attendance is not None:
        return attendance
    attendance = _insert_or_reload(
        db,
        Attendance(
            employee_id=employee.id,
            date=day,
            clock_in=now,
            status=_arrival_status(now),
            approval_status=ApprovalStatus.NOT_REQUIRED.value,
            attempt_count=0,
            locked=False,
            location=location,
            ip_address=ip_address,
            photo=photo,
            source=AttendanceSource.SELF.value,
        ),
    )
    _log.info("Implicit clock-in from task check-in: employee_id=%s date=%s", employee.id, day)
    return attendance
