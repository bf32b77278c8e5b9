"""
Task work sessions: check-in / check-out against an assigned task.

Field engineers may only start a task once today's attendance is clocked in
and approved. In-office staff have no approval step; their first task
check-in of the day is also their clock-in. An employee has at most one
IN_PROGRESS task, guarded here and by the partial unique index on tasks.

Attendance is read and created only through attendance_service.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ErrorKind
from app.models.attendance import ApprovalStatus
from app.models.employee import Employee, Role
from app.models.task import Task, TaskStatus
from app.services import attendance_service
from app.services.audit_service import log_audit
from app.services.result import ServiceResult
from app.utils.datetime_utils import now_utc, local_date, iso_local, minutes_between

_log = logging.getLogger(__name__)


def task_to_dict(task: Task) -> dict:
    return {
        "task_id": task.id,
        "employee_id": task.employee_id,
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "location": task.location,
        "status": task.status,
        "check_in": iso_local(task.check_in),
        "check_out": iso_local(task.check_out),
        "ticket_id": task.ticket_id,
        "assigned_by": task.assigned_by,
    }


def _active_task(db: Session, employee_id: int, exclude_task_id: Optional[int] = None) -> Optional[Task]:
    query = db.query(Task).filter(
        Task.employee_id == employee_id,
        Task.status == TaskStatus.IN_PROGRESS.value,
    )
    if exclude_task_id is not None:
        query = query.filter(Task.id != exclude_task_id)
    return query.first()


def _another_task_active(blocking: Task) -> ServiceResult:
    return ServiceResult.fail(
        ErrorKind.ANOTHER_TASK_ACTIVE,
        f"Task #{blocking.id} \"{blocking.title}\" is already in progress. Check out of it first.",
        {"active_task_id": blocking.id, "active_task_title": blocking.title},
    )


def _load_owned(db: Session, employee_id: int, task_id: int):
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        return None, None, ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    task = db.query(Task).filter(Task.id == task_id).first()
    # a task owned by someone else is reported as missing
    if not task or task.employee_id != employee.id:
        return employee, None, ServiceResult.fail(ErrorKind.NOT_FOUND, "Task not found")
    return employee, task, None


def task_check_in(
    db: Session,
    employee_id: int,
    task_id: int,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    photo: Optional[str] = None,
    location: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ServiceResult:
    now = now or now_utc()
    employee, task, error = _load_owned(db, employee_id, task_id)
    if error:
        return error
    if not employee.is_active:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Employee is not active")

    if task.status == TaskStatus.COMPLETED.value:
        return ServiceResult.fail(ErrorKind.ALREADY_COMPLETED, "Task is already completed")
    if task.status == TaskStatus.IN_PROGRESS.value:
        return ServiceResult.fail(ErrorKind.ALREADY_IN_PROGRESS, "Task is already in progress")

    if employee.role == Role.FIELD_ENGINEER.value:
        attendance = attendance_service.get_attendance_for_day(db, employee.id, local_date(now))
        if (
            attendance is None
            or attendance.clock_in is None
            or attendance.approval_status != ApprovalStatus.APPROVED.value
        ):
            return ServiceResult.fail(
                ErrorKind.ATTENDANCE_NOT_APPROVED,
                "Your attendance for today must be checked in and approved by an admin before starting tasks",
                {"approval_status": attendance.approval_status if attendance else None},
            )

    blocking = _active_task(db, employee.id, exclude_task_id=task.id)
    if blocking:
        return _another_task_active(blocking)

    if employee.role == Role.IN_OFFICE.value:
        # runs before the task is touched; it may roll back on a concurrent insert
        attendance_service.record_implicit_clock_in(
            db,
            employee,
            now,
            location=location or task.location,
            ip_address=ip_address,
            photo=photo,
        )

    task.status = TaskStatus.IN_PROGRESS.value
    task.check_in = now
    task.check_out = None
    if location:
        task.location = location
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        blocking = _active_task(db, employee.id, exclude_task_id=task_id)
        _log.info("Task check-in lost a race: employee_id=%s task_id=%s", employee_id, task_id)
        if blocking:
            return _another_task_active(blocking)
        raise
    db.refresh(task)
    _log.info("Task check-in: employee_id=%s task_id=%s ip=%s", employee.id, task.id, ip_address)

    log_audit(
        db=db,
        actor_id=employee.id,
        action="TASK_CHECK_IN",
        entity_type="tasks",
        entity_id=task.id,
        meta={"ip_address": ip_address, "user_agent": user_agent, "location": task.location},
    )
    return ServiceResult.ok("Checked in to task", task_to_dict(task))


def task_check_out(db: Session, employee_id: int, task_id: int, now: Optional[datetime] = None) -> ServiceResult:
    """IN_PROGRESS -> COMPLETED. A completed task cannot be reopened."""
    now = now or now_utc()
    employee, task, error = _load_owned(db, employee_id, task_id)
    if error:
        return error
    if task.status != TaskStatus.IN_PROGRESS.value or task.check_in is None:
        return ServiceResult.fail(ErrorKind.NOT_IN_PROGRESS, "Task is not in progress")

    task.status = TaskStatus.COMPLETED.value
    task.check_out = now
    db.commit()
    db.refresh(task)
    _log.info("Task check-out: employee_id=%s task_id=%s", employee.id, task.id)

    log_audit(
        db=db,
        actor_id=employee.id,
        action="TASK_CHECK_OUT",
        entity_type="tasks",
        entity_id=task.id,
    )
    data = task_to_dict(task)
    data["duration_minutes"] = minutes_between(task.check_in, task.check_out)
    return ServiceResult.ok("Checked out of task", data)


def get_current_task_status(db: Session, employee_id: int) -> ServiceResult:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    task = _active_task(db, employee.id)
    if task is None:
        return ServiceResult.ok("No task in progress", {"has_active_task": False, "task": None})
    return ServiceResult.ok("Task in progress", {"has_active_task": True, "task": task_to_dict(task)})


def create_task(
    db: Session,
    *,
    employee_id: int,
    title: str,
    actor_id: int,
    description: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    ticket_id: Optional[int] = None,
) -> ServiceResult:
    """Assign a new task to an employee (directly or converted from a support ticket)."""
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    if employee.role == Role.ADMIN.value:
        return ServiceResult.fail(ErrorKind.NOT_ALLOWED, "Tasks can only be assigned to field or in-office staff")

    task = Task(
        employee_id=employee.id,
        title=title,
        description=description,
        category=category,
        location=location,
        ticket_id=ticket_id,
        status=TaskStatus.PENDING.value,
        assigned_by=actor_id,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    _log.info("Task created: task_id=%s employee_id=%s ticket_id=%s", task.id, employee.id, ticket_id)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="TASK_CREATE",
        entity_type="tasks",
        entity_id=task.id,
        meta={"employee_id": employee.id, "title": title, "ticket_id": ticket_id},
    )
    return ServiceResult.ok("Task created", task_to_dict(task))


def list_tasks_for_employee(
    db: Session,
    employee_id: int,
    status: Optional[TaskStatus] = None,
) -> List[Task]:
    query = db.query(Task).filter(Task.employee_id == employee_id)
    if status is not None:
        query = query.filter(Task.status == status.value)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()
