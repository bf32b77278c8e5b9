"""
Task schemas
"""
from typing import Optional
from pydantic import BaseModel, Field


class TaskCheckInRequest(BaseModel):
    """Schema for task check-in"""
    photo: Optional[str] = Field(None, description="Photo reference taken at the task site")
    location: Optional[str] = Field(None, max_length=500, description="Where the work is being done")


class TaskCreate(BaseModel):
    """Schema for assigning a task to an employee"""
    employee_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=500)
    ticket_id: Optional[int] = Field(None, description="Support ticket this task was converted from")
