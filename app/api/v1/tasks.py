"""
Task check-in/check-out endpoints for the signed-in employee
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.responses import to_response
from app.api.v1.attendance import client_ip
from app.core.deps import get_db, get_current_user
from app.models.employee import Employee
from app.models.task import TaskStatus
from app.schemas.task import TaskCheckInRequest
from app.services import task_service
from app.services.result import ServiceResult

router = APIRouter()


@router.get("/current")
async def current_task(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """The task the employee is currently checked in to, if any"""
    return to_response(task_service.get_current_task_status(db, current_user.id))


@router.get("/my")
async def my_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    tasks = task_service.list_tasks_for_employee(db, current_user.id, status=status_filter)
    items = [task_service.task_to_dict(t) for t in tasks]
    return to_response(ServiceResult.ok(f"{len(items)} task(s)", {"items": items, "total": len(items)}))


@router.post("/{task_id}/check-in")
async def task_check_in(
    task_id: int,
    request: Request,
    payload: Optional[TaskCheckInRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Start work on a task. Field engineers need today's attendance approved first;
    for in-office staff the first task check-in of the day is also the clock-in.
    """
    payload = payload or TaskCheckInRequest()
    result = task_service.task_check_in(
        db,
        current_user.id,
        task_id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        photo=payload.photo,
        location=payload.location,
    )
    return to_response(result)


@router.post("/{task_id}/check-out")
async def task_check_out(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return to_response(task_service.task_check_out(db, current_user.id, task_id))
