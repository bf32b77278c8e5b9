"""
Tests for daily check-in: attempts, lockout, geofence and late cutoff
"""
from datetime import date, timedelta

from fastapi import status
from sqlalchemy import update

from conftest import (
    MORNING,
    LATE_MORNING,
    OFFICE_LAT,
    OFFICE_LNG,
    FAR_LAT,
    FAR_LNG,
    auth_headers,
)
from app.core.errors import ErrorKind
from app.models.attendance import Attendance, ApprovalStatus, AttendanceSource
from app.models.employee import EmployeeStatus, Role
from app.models.notification import Notification
from app.services import attendance_service
from app.services.daily_location_service import assign_daily_location
from app.services.system_config_service import config_service


def _check_in(db, employee, **kwargs):
    kwargs.setdefault("now", MORNING)
    return attendance_service.check_in(db, employee.id, config_service=config_service, **kwargs)


def _row(db, employee, day=date(2026, 3, 2)):
    return attendance_service.get_attendance_for_day(db, employee.id, day)


def test_field_engineer_check_in_pending_approval(db, field_engineer):
    """Scenario: FE001 checks in at 08:30 local; record is PRESENT and PENDING"""
    result = _check_in(db, field_engineer, location="Site A")

    assert result.success is True
    assert result.data["status"] == "PRESENT"
    assert result.data["approval_status"] == "PENDING"
    assert result.data["needs_approval"] is True
    assert result.data["date"] == "2026-03-02"

    row = _row(db, field_engineer)
    assert row.clock_in is not None
    assert row.attempt_count == 0
    assert row.locked is False
    assert row.source == AttendanceSource.SELF.value


def test_field_engineer_check_in_notifies_admin(db, field_engineer):
    _check_in(db, field_engineer, location="Site A")

    notification = db.query(Notification).one()
    assert notification.type == "ATTENDANCE_APPROVAL_REQUEST"
    assert notification.data["employee_code"] == "FE001"
    assert notification.is_read is False


def test_office_employee_check_in_needs_no_approval(db, office_employee):
    result = _check_in(db, office_employee)

    assert result.success is True
    assert result.data["approval_status"] == ApprovalStatus.NOT_REQUIRED.value
    # no geofence configured and no text: falls back to the office name
    assert result.data["location"] == "Main Office"
    assert db.query(Notification).count() == 0


def test_check_in_after_cutoff_is_late(db, office_employee):
    result = _check_in(db, office_employee, now=LATE_MORNING)
    assert result.data["status"] == "LATE"


def test_local_day_follows_app_timezone(db, office_employee):
    """22:00 UTC is already the next calendar day in Asia/Kolkata"""
    evening_utc = MORNING.replace(hour=22)
    result = _check_in(db, office_employee, now=evening_utc)
    assert result.data["date"] == "2026-03-03"


def test_second_check_in_same_day_rejected(db, field_engineer):
    _check_in(db, field_engineer)
    result = _check_in(db, field_engineer, now=MORNING + timedelta(minutes=5))

    assert result.success is False
    assert result.error == ErrorKind.ALREADY_CHECKED_IN.value
    assert db.query(Attendance).count() == 1


def test_rejected_attendance_blocks_check_in(db, field_engineer, admin):
    first = _check_in(db, field_engineer)
    attendance_service.reject(db, first.data["attendance_id"], admin.id, reason="Wrong site")

    result = _check_in(db, field_engineer, now=MORNING + timedelta(minutes=5))
    assert result.error == ErrorKind.ATTENDANCE_REJECTED.value


def test_inactive_employee_cannot_check_in(db, make_employee):
    employee = make_employee("FE002", Role.FIELD_ENGINEER, status=EmployeeStatus.INACTIVE)
    result = _check_in(db, employee)
    assert result.error == ErrorKind.NOT_ALLOWED.value


def test_admin_cannot_check_in(db, admin):
    result = _check_in(db, admin)
    assert result.error == ErrorKind.NOT_ALLOWED.value


def test_unknown_employee(db):
    result = attendance_service.check_in(db, 9999, config_service=config_service, now=MORNING)
    assert result.error == ErrorKind.NOT_FOUND.value


def test_inside_office_geofence(db, office_employee, office_with_geofence):
    result = _check_in(db, office_employee, latitude=OFFICE_LAT + 0.001, longitude=OFFICE_LNG)

    assert result.success is True
    # reverse geocoding is disabled in tests
    assert result.data["location"].startswith("Coordinates: ")


def test_geofence_requires_coordinates_and_does_not_count(db, office_employee, office_with_geofence):
    result = _check_in(db, office_employee)

    assert result.error == ErrorKind.LOCATION_REQUIRED.value
    assert _row(db, office_employee) is None


def test_outside_geofence_counts_attempt(db, office_employee, office_with_geofence):
    result = _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG)

    assert result.success is False
    assert result.error == ErrorKind.OUTSIDE_GEOFENCE.value
    assert result.data["attempt_count"] == 1
    assert result.data["remaining_attempts"] == 2
    assert result.data["distance_meters"] > 200

    row = _row(db, office_employee)
    assert row.attempt_count == 1
    assert row.clock_in is None


def test_attempts_exhausted_locks_record(db, office_employee, office_with_geofence):
    """Scenario: three failures, the 4th attempt is AttemptsExhausted, then LockedAttendance"""
    for i in range(3):
        result = _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG, now=MORNING + timedelta(minutes=i))
        assert result.error == ErrorKind.OUTSIDE_GEOFENCE.value

    fourth = _check_in(db, office_employee, latitude=OFFICE_LAT, longitude=OFFICE_LNG, now=MORNING + timedelta(minutes=3))
    assert fourth.error == ErrorKind.ATTEMPTS_EXHAUSTED.value

    row = _row(db, office_employee)
    assert row.locked is True
    assert row.status == "ABSENT"
    assert row.locked_reason

    fifth = _check_in(db, office_employee, latitude=OFFICE_LAT, longitude=OFFICE_LNG, now=MORNING + timedelta(minutes=4))
    assert fifth.error == ErrorKind.LOCKED_ATTENDANCE.value
    db.refresh(row)
    assert row.attempt_count == 4


def test_attempt_count_increments_the_stored_value(db, office_employee, office_with_geofence, monkeypatch):
    """Attempts counted by other requests after this one loaded the row are not overwritten"""
    _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG)

    real_ensure = attendance_service._ensure_attendance

    def ensure_then_others_attempt(session, employee, day):
        attendance = real_ensure(session, employee, day)
        # two more attempts land in the database; the loaded object still reads 1
        session.execute(
            update(Attendance)
            .where(Attendance.id == attendance.id)
            .values(attempt_count=3)
            .execution_options(synchronize_session=False)
        )
        return attendance

    monkeypatch.setattr(attendance_service, "_ensure_attendance", ensure_then_others_attempt)
    result = _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG, now=MORNING + timedelta(minutes=1))

    assert result.error == ErrorKind.ATTEMPTS_EXHAUSTED.value
    row = _row(db, office_employee)
    assert row.attempt_count == 4
    assert row.locked is True


def test_success_resets_attempt_count(db, office_employee, office_with_geofence):
    _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG)
    result = _check_in(db, office_employee, latitude=OFFICE_LAT, longitude=OFFICE_LNG, now=MORNING + timedelta(minutes=1))

    assert result.success is True
    assert _row(db, office_employee).attempt_count == 0


def test_field_engineer_geofenced_by_daily_site(db, field_engineer, admin):
    assign_daily_location(
        db,
        employee_id=field_engineer.id,
        day=date(2026, 3, 2),
        actor_id=admin.id,
        address="Customer plant",
        latitude=OFFICE_LAT,
        longitude=OFFICE_LNG,
        radius=150,
    )

    far = _check_in(db, field_engineer, latitude=FAR_LAT, longitude=FAR_LNG)
    assert far.error == ErrorKind.OUTSIDE_GEOFENCE.value
    assert "Customer plant" in far.message

    near = _check_in(db, field_engineer, latitude=OFFICE_LAT, longitude=OFFICE_LNG, now=MORNING + timedelta(minutes=1))
    assert near.success is True


def test_remaining_attempts(db, office_employee, office_with_geofence):
    before = attendance_service.remaining_attempts(db, office_employee.id, now=MORNING)
    assert before.data["has_record"] is False
    assert before.data["remaining_attempts"] == 3

    _check_in(db, office_employee, latitude=FAR_LAT, longitude=FAR_LNG)
    after = attendance_service.remaining_attempts(db, office_employee.id, now=MORNING)
    assert after.data["has_record"] is True
    assert after.data["attempt_count"] == 1
    assert after.data["remaining_attempts"] == 2
    assert after.data["is_locked"] is False


def test_concurrent_insert_is_reread(db, office_employee, monkeypatch):
    """A unique-constraint race on the daily row is resolved by re-reading the winner"""
    winner = Attendance(
        employee_id=office_employee.id,
        date=date(2026, 3, 2),
        status="ABSENT",
        approval_status=ApprovalStatus.NOT_REQUIRED.value,
        attempt_count=0,
        locked=False,
        source=AttendanceSource.SELF.value,
    )
    db.add(winner)
    db.commit()
    winner_id = winner.id

    # Simulate the row not being visible when this request first looked
    real_lookup = attendance_service.get_attendance_for_day
    calls = {"n": 0}

    def stale_first_lookup(session, employee_id, day):
        calls["n"] += 1
        if calls["n"] <= 2:
            return None
        return real_lookup(session, employee_id, day)

    monkeypatch.setattr(attendance_service, "get_attendance_for_day", stale_first_lookup)

    result = _check_in(db, office_employee)
    assert result.success is True
    assert result.data["attendance_id"] == winner_id
    assert db.query(Attendance).count() == 1


def test_check_out(db, office_employee):
    _check_in(db, office_employee)
    result = attendance_service.check_out(db, office_employee.id, now=MORNING + timedelta(hours=8))

    assert result.success is True
    assert result.data["work_minutes"] == 480

    again = attendance_service.check_out(db, office_employee.id, now=MORNING + timedelta(hours=9))
    assert again.error == ErrorKind.ALREADY_CHECKED_OUT.value


def test_check_out_without_check_in(db, office_employee):
    result = attendance_service.check_out(db, office_employee.id, now=MORNING)
    assert result.error == ErrorKind.NOT_CHECKED_IN.value


def test_check_in_endpoint(client, field_engineer):
    headers = auth_headers(client, "FE001")
    response = client.post(
        "/api/v1/attendance/check-in",
        json={"location": "Site A", "latitude": 12.97, "longitude": 77.59},
        headers={**headers, "User-Agent": "FieldApp/2.1 (Android 14)"},
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["data"]["approval_status"] == "PENDING"

    again = client.post("/api/v1/attendance/check-in", json={}, headers=headers)
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert again.json()["error"] == "AlreadyCheckedIn"

    today = client.get("/api/v1/attendance/today", headers=headers).json()
    assert today["data"]["has_attendance"] is True
    assert today["data"]["is_checked_in"] is True


def test_check_in_endpoint_rejects_half_coordinates(client, field_engineer):
    headers = auth_headers(client, "FE001")
    response = client.post("/api/v1/attendance/check-in", json={"latitude": 12.97}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "ValidationError"


def test_attempts_endpoint_is_self_or_admin(client, field_engineer, office_employee, admin_headers):
    fe_headers = auth_headers(client, "FE001")
    own = client.get(f"/api/v1/attendance/attempts/{field_engineer.id}", headers=fe_headers)
    assert own.status_code == status.HTTP_200_OK
    assert own.json()["data"]["max_attempts"] == 3

    other = client.get(f"/api/v1/attendance/attempts/{office_employee.id}", headers=fe_headers)
    assert other.status_code == status.HTTP_403_FORBIDDEN

    as_admin = client.get(f"/api/v1/attendance/attempts/{office_employee.id}", headers=admin_headers)
    assert as_admin.status_code == status.HTTP_200_OK
