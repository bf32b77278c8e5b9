"""
Employee management endpoints (ADMIN-only, except /me)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.orm import Session
from app.api.responses import to_response
from app.core.deps import get_db, require_roles, get_current_user
from app.models.employee import Role, Employee, EmployeeStatus
from app.schemas.employee import EmployeeCreate, EmployeeOut, EmployeeStatusUpdate, NextCodeOut
from app.services.employee_service import (
    create_employee,
    list_employees,
    get_employee,
    next_employee_code,
    update_employee_status,
)

router = APIRouter()


@router.post("")
async def create_employee_endpoint(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    """Create a new employee (ADMIN-only). The code is generated from the role unless given."""
    result = create_employee(
        db,
        name=employee_data.name,
        role=employee_data.role,
        actor_id=current_user.id,
        email=employee_data.email,
        phone=employee_data.phone,
        password=employee_data.password,
        employee_code=employee_data.employee_code,
    )
    return to_response(result, success_status=status.HTTP_201_CREATED)


@router.get("/me", response_model=EmployeeOut)
async def get_me_endpoint(current_user: Employee = Depends(get_current_user)):
    """Current authenticated user's profile"""
    return current_user


@router.get("/next-code", response_model=NextCodeOut)
async def next_code_endpoint(
    role: Role = Query(...),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    """Preview the code the next employee of this role will get"""
    return NextCodeOut(role=role, employee_code=next_employee_code(db, role))


@router.get("", response_model=List[EmployeeOut])
async def list_employees_endpoint(
    role: Optional[Role] = Query(None),
    status_filter: Optional[EmployeeStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    return list_employees(db, role=role, status=status_filter)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    employee = get_employee(db, employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


@router.patch("/{employee_id}/status")
async def update_status_endpoint(
    employee_id: int,
    payload: EmployeeStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN))
):
    return to_response(update_employee_status(db, employee_id, payload.status, current_user.id))
