"""
Employee service: admin-side creation with sequential per-role codes, lookup and status changes.
"""
import logging
import re
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import EMPLOYEE_CODE_PREFIXES
from app.core.errors import ErrorKind
from app.core.security import hash_password
from app.models.employee import Employee, EmployeeStatus, Role
from app.services.audit_service import log_audit
from app.services.result import ServiceResult

_log = logging.getLogger(__name__)


def next_employee_code(db: Session, role: Role) -> str:
    """
    Next free code for the role: FE001, FE002... for field engineers,
    IO001... for in-office staff, ADM001... for admins.
    Gaps are not reused; the highest existing number wins.
    """
    prefix = EMPLOYEE_CODE_PREFIXES[role.value]
    pattern = re.compile(rf"^{prefix}(\d+)$")
    codes = [
        row[0]
        for row in db.query(Employee.employee_code).filter(
            Employee.employee_code.like(f"{prefix}%"),
            Employee.role == role.value,
        ).all()
    ]
    highest = 0
    for code in codes:
        match = pattern.match(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1:03d}"


def employee_to_dict(employee: Employee) -> dict:
    return {
        "id": employee.id,
        "employee_code": employee.employee_code,
        "name": employee.name,
        "email": employee.email,
        "phone": employee.phone,
        "role": employee.role,
        "status": employee.status,
    }


def create_employee(
    db: Session,
    *,
    name: str,
    role: Role,
    actor_id: int,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    password: Optional[str] = None,
    employee_code: Optional[str] = None,
) -> ServiceResult:
    """Create an employee; the code is generated from the role unless supplied."""
    if email and db.query(Employee).filter(Employee.email == email).first():
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, f"Email {email} is already in use")

    code = employee_code or next_employee_code(db, role)
    if db.query(Employee).filter(Employee.employee_code == code).first():
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, f"Employee code {code} is already in use")

    employee = Employee(
        employee_code=code,
        name=name,
        email=email,
        phone=phone,
        role=role.value,
        status=EmployeeStatus.ACTIVE.value,
        password_hash=hash_password(password) if password else None,
    )
    db.add(employee)
    try:
        db.commit()
    except IntegrityError:
        # concurrent create took the same code or email
        db.rollback()
        return ServiceResult.fail(ErrorKind.VALIDATION_ERROR, "Employee code or email is already in use, please retry")
    db.refresh(employee)
    _log.info("Employee created: id=%s code=%s role=%s", employee.id, employee.employee_code, employee.role)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_CREATE",
        entity_type="employees",
        entity_id=employee.id,
        meta={"employee_code": employee.employee_code, "role": employee.role},
    )
    return ServiceResult.ok("Employee created", employee_to_dict(employee))


def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.id == employee_id).first()


def list_employees(
    db: Session,
    role: Optional[Role] = None,
    status: Optional[EmployeeStatus] = None,
) -> List[Employee]:
    query = db.query(Employee)
    if role is not None:
        query = query.filter(Employee.role == role.value)
    if status is not None:
        query = query.filter(Employee.status == status.value)
    return query.order_by(Employee.employee_code).all()


def update_employee_status(db: Session, employee_id: int, status: EmployeeStatus, actor_id: int) -> ServiceResult:
    employee = get_employee(db, employee_id)
    if not employee:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "Employee not found")
    old_status = employee.status
    employee.status = status.value
    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_STATUS_UPDATE",
        entity_type="employees",
        entity_id=employee.id,
        meta={"old_status": old_status, "new_status": employee.status},
    )
    return ServiceResult.ok("Employee status updated", employee_to_dict(employee))
