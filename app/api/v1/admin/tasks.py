"""
Admin task assignment endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.core.deps import get_db, require_roles
from app.models.employee import Employee, Role
from app.models.task import TaskStatus
from app.schemas.task import TaskCreate
from app.services import task_service
from app.services.result import ServiceResult

router = APIRouter()


@router.post("")
async def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    result = task_service.create_task(
        db,
        employee_id=payload.employee_id,
        title=payload.title,
        actor_id=current_user.id,
        description=payload.description,
        category=payload.category,
        location=payload.location,
        ticket_id=payload.ticket_id,
    )
    return to_response(result, success_status=status.HTTP_201_CREATED)


@router.get("/employee/{employee_id}")
async def list_employee_tasks(
    employee_id: int,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    tasks = task_service.list_tasks_for_employee(db, employee_id, status=status_filter)
    items = [task_service.task_to_dict(t) for t in tasks]
    return to_response(ServiceResult.ok(f"{len(items)} task(s)", {"items": items, "total": len(items)}))
