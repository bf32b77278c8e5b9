"""
Tests for admin attendance actions: approve, reject, re-enable and bypass
"""
from datetime import date, timedelta

import pytest
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

from conftest import MORNING, OFFICE_LAT, OFFICE_LNG, FAR_LAT, FAR_LNG, auth_headers
from app.core.errors import ErrorKind
from app.models.attendance import ApprovalStatus, AttendanceStatus, AttendanceSource
from app.models.audit_log import AuditLog
from app.services.daily_location_service import assign_daily_location
from app.services import attendance_service
from app.services.system_config_service import config_service


def _fe_check_in(db, employee, now=MORNING):
    return attendance_service.check_in(
        db, employee.id, config_service=config_service, location="Site A", now=now
    )


def _lock(db, employee):
    """Four failed attempts against the office geofence"""
    for i in range(4):
        attendance_service.check_in(
            db,
            employee.id,
            config_service=config_service,
            latitude=FAR_LAT,
            longitude=FAR_LNG,
            now=MORNING + timedelta(minutes=i),
        )
    return attendance_service.get_attendance_for_day(db, employee.id, date(2026, 3, 2))


def _actions(db, action):
    return db.query(AuditLog).filter(AuditLog.action == action).all()


def test_approve_pending(db, field_engineer, admin):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]

    result = attendance_service.approve(db, attendance_id, admin.id, reason="Verified selfie")
    assert result.success is True
    assert result.data["approval_status"] == ApprovalStatus.APPROVED.value
    assert result.data["approved_by"] == admin.id
    assert result.data["approved_at"] is not None
    assert len(_actions(db, "ATTENDANCE_APPROVE")) == 1


def test_approve_twice_is_invalid_transition(db, field_engineer, admin):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]
    attendance_service.approve(db, attendance_id, admin.id)

    again = attendance_service.approve(db, attendance_id, admin.id)
    assert again.error == ErrorKind.INVALID_TRANSITION.value
    reject = attendance_service.reject(db, attendance_id, admin.id, reason="too late")
    assert reject.error == ErrorKind.INVALID_TRANSITION.value


def test_office_attendance_cannot_be_approved(db, office_employee, admin):
    result = attendance_service.check_in(db, office_employee.id, config_service=config_service, now=MORNING)
    approve = attendance_service.approve(db, result.data["attendance_id"], admin.id)
    assert approve.error == ErrorKind.INVALID_TRANSITION.value


def test_reject_keeps_clock_in(db, field_engineer, admin):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]

    result = attendance_service.reject(db, attendance_id, admin.id, reason="Not at the site")
    assert result.success is True
    assert result.data["approval_status"] == ApprovalStatus.REJECTED.value
    assert result.data["clock_in"] is not None
    assert result.data["approval_reason"] == "Not at the site"
    assert result.data["rejected_by"] == admin.id


def test_reject_requires_reason(db, field_engineer, admin):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]
    result = attendance_service.reject(db, attendance_id, admin.id, reason="   ")
    assert result.error == ErrorKind.VALIDATION_ERROR.value


def test_approve_unknown_attendance(db, admin):
    result = attendance_service.approve(db, 4242, admin.id)
    assert result.error == ErrorKind.NOT_FOUND.value


def test_re_enable_unlocks_and_resets_attempts(db, office_employee, admin, office_with_geofence):
    row = _lock(db, office_employee)
    assert row.locked is True

    result = attendance_service.re_enable(db, row.id, admin.id, reason="GPS drift")
    assert result.success is True

    db.refresh(row)
    assert row.locked is False
    assert row.attempt_count == 0
    assert row.locked_reason is None
    assert row.employee_id == office_employee.id
    assert row.date == date(2026, 3, 2)
    assert row.status == AttendanceStatus.ABSENT.value
    assert len(_actions(db, "ATTENDANCE_RE_ENABLE")) == 1


def test_re_enable_can_restore_present(db, office_employee, admin, office_with_geofence):
    row = _lock(db, office_employee)
    attendance_service.re_enable(db, row.id, admin.id, restore_present=True)
    db.refresh(row)
    assert row.status == AttendanceStatus.PRESENT.value


def test_re_enable_is_idempotent(db, office_employee, admin, office_with_geofence):
    row = _lock(db, office_employee)
    attendance_service.re_enable(db, row.id, admin.id)

    again = attendance_service.re_enable(db, row.id, admin.id)
    assert again.success is True
    assert again.message == "Check-in is already enabled"
    assert len(_actions(db, "ATTENDANCE_RE_ENABLE")) == 1


def test_re_enable_after_lock_allows_check_in(db, office_employee, admin, office_with_geofence):
    row = _lock(db, office_employee)
    attendance_service.re_enable(db, row.id, admin.id)

    result = attendance_service.check_in(
        db,
        office_employee.id,
        config_service=config_service,
        latitude=office_with_geofence.latitude,
        longitude=office_with_geofence.longitude,
        now=MORNING + timedelta(minutes=30),
    )
    assert result.success is True


def test_re_enable_reopens_rejected_day(db, field_engineer, admin):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]
    attendance_service.reject(db, attendance_id, admin.id, reason="Blurry photo")

    result = attendance_service.re_enable(db, attendance_id, admin.id)
    assert result.data["approval_status"] == ApprovalStatus.PENDING.value
    assert result.data["clock_in"] is None
    assert result.data["approval_reason"] is None
    assert result.data["rejected_by"] is None

    again = _fe_check_in(db, field_engineer, now=MORNING + timedelta(minutes=10))
    assert again.success is True


def test_bypass_create_for_field_engineer(db, field_engineer, admin):
    result = attendance_service.bypass_create(
        db,
        employee_id=field_engineer.id,
        status=AttendanceStatus.PRESENT,
        location="Customer site",
        admin_id=admin.id,
        reason="Phone GPS broken",
        now=MORNING,
    )
    assert result.success is True
    assert result.data["source"] == AttendanceSource.ADMIN.value
    assert result.data["approval_status"] == ApprovalStatus.APPROVED.value
    assert result.data["clock_in"] is not None
    assert result.data["attempt_count"] == 0

    audit = _actions(db, "ATTENDANCE_BYPASS_CREATE")
    assert len(audit) == 1
    assert audit[0].meta_json["reason"] == "Phone GPS broken"


def test_bypass_clears_lock(db, office_employee, admin, office_with_geofence):
    row = _lock(db, office_employee)
    result = attendance_service.bypass_create(
        db,
        employee_id=office_employee.id,
        status=AttendanceStatus.LATE,
        location="HQ",
        admin_id=admin.id,
        reason="Locked out by GPS drift",
        now=MORNING + timedelta(hours=1),
    )
    assert result.success is True
    db.refresh(row)
    assert row.locked is False
    assert row.status == AttendanceStatus.LATE.value
    assert row.approval_status == ApprovalStatus.NOT_REQUIRED.value


def test_bypass_requires_admin(db, field_engineer, office_employee):
    result = attendance_service.bypass_create(
        db,
        employee_id=field_engineer.id,
        status=AttendanceStatus.PRESENT,
        location="Somewhere",
        admin_id=office_employee.id,
        reason="Trying it",
    )
    assert result.error == ErrorKind.NOT_ALLOWED.value


def test_pending_approvals_lists_checked_in_field_engineers(db, field_engineer, office_employee, admin):
    _fe_check_in(db, field_engineer)
    attendance_service.check_in(db, office_employee.id, config_service=config_service, now=MORNING)

    items = attendance_service.list_pending_approvals(db)
    assert [item["employee_code"] for item in items] == ["FE001"]


def test_admin_endpoints_flow(client, field_engineer, admin_headers):
    fe_headers = auth_headers(client, "FE001")
    check_in = client.post("/api/v1/attendance/check-in", json={"location": "Site A"}, headers=fe_headers)
    attendance_id = check_in.json()["data"]["attendance_id"]

    pending = client.get("/api/v1/admin/attendance/pending", headers=admin_headers)
    assert pending.status_code == status.HTTP_200_OK
    assert pending.json()["data"]["total"] == 1

    missing_reason = client.post(f"/api/v1/admin/attendance/{attendance_id}/reject", json={}, headers=admin_headers)
    assert missing_reason.status_code == status.HTTP_400_BAD_REQUEST

    approve = client.post(f"/api/v1/admin/attendance/{attendance_id}/approve", json={}, headers=admin_headers)
    assert approve.status_code == status.HTTP_200_OK
    assert approve.json()["data"]["approval_status"] == "APPROVED"

    again = client.post(f"/api/v1/admin/attendance/{attendance_id}/approve", json={}, headers=admin_headers)
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert again.json()["error"] == "InvalidTransition"


def test_admin_endpoints_forbidden_for_employees(client, field_engineer):
    fe_headers = auth_headers(client, "FE001")
    response = client.get("/api/v1/admin/attendance/pending", headers=fe_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"] == "Forbidden"


def test_bypass_endpoint(client, office_employee, admin_headers):
    response = client.post(
        "/api/v1/admin/attendance/bypass",
        json={
            "employee_id": office_employee.id,
            "status": "PRESENT",
            "location": "HQ",
            "reason": "Badge reader down",
        },
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["source"] == "ADMIN"

    bad_status = client.post(
        "/api/v1/admin/attendance/bypass",
        json={"employee_id": office_employee.id, "status": "HOLIDAY", "location": "HQ", "reason": "x"},
        headers=admin_headers,
    )
    assert bad_status.status_code == status.HTTP_400_BAD_REQUEST


def test_reject_before_check_in_is_invalid_transition(db, field_engineer, admin):
    """A failed geofence attempt leaves a PENDING row with no clock-in; it cannot be rejected"""
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
    attendance_service.check_in(
        db, field_engineer.id, config_service=config_service, latitude=FAR_LAT, longitude=FAR_LNG, now=MORNING
    )
    row = attendance_service.get_attendance_for_day(db, field_engineer.id, date(2026, 3, 2))
    assert row.approval_status == ApprovalStatus.PENDING.value
    assert row.clock_in is None

    result = attendance_service.reject(db, row.id, admin.id, reason="Not at the site")
    assert result.error == ErrorKind.INVALID_TRANSITION.value
    assert _actions(db, "ATTENDANCE_REJECT") == []

    db.refresh(row)
    assert row.approval_status == ApprovalStatus.PENDING.value
    assert row.rejected_by is None


def _failing_audit(*args, **kwargs):
    raise SQLAlchemyError("audit_logs unavailable")


def test_bypass_is_not_stored_without_its_audit_entry(db, office_employee, admin, office_with_geofence, monkeypatch):
    row = _lock(db, office_employee)
    monkeypatch.setattr(attendance_service, "log_audit", _failing_audit)

    with pytest.raises(SQLAlchemyError):
        attendance_service.bypass_create(
            db,
            employee_id=office_employee.id,
            status=AttendanceStatus.PRESENT,
            location="HQ",
            admin_id=admin.id,
            reason="Badge reader down",
            now=MORNING + timedelta(hours=1),
        )
    db.rollback()

    db.refresh(row)
    assert row.locked is True
    assert row.status == AttendanceStatus.ABSENT.value
    assert row.source == AttendanceSource.SELF.value


def test_approve_is_not_stored_without_its_audit_entry(db, field_engineer, admin, monkeypatch):
    attendance_id = _fe_check_in(db, field_engineer).data["attendance_id"]
    monkeypatch.setattr(attendance_service, "log_audit", _failing_audit)

    with pytest.raises(SQLAlchemyError):
        attendance_service.approve(db, attendance_id, admin.id)
    db.rollback()

    row = attendance_service.get_attendance_for_day(db, field_engineer.id, date(2026, 3, 2))
    assert row.approval_status == ApprovalStatus.PENDING.value
    assert row.approved_by is None


def test_approve_and_re_enable_endpoints_accept_empty_body(client, field_engineer, admin_headers):
    fe_headers = auth_headers(client, "FE001")
    attendance_id = client.post(
        "/api/v1/attendance/check-in", json={"location": "Site A"}, headers=fe_headers
    ).json()["data"]["attendance_id"]

    approve = client.post(f"/api/v1/admin/attendance/{attendance_id}/approve", headers=admin_headers)
    assert approve.status_code == status.HTTP_200_OK
    assert approve.json()["data"]["approval_status"] == "APPROVED"

    re_enable = client.post(f"/api/v1/admin/attendance/{attendance_id}/re-enable", headers=admin_headers)
    assert re_enable.status_code == status.HTTP_200_OK
    assert re_enable.json()["message"] == "Check-in is already enabled"
