"""
Employee schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, field_serializer, ConfigDict
from app.models.employee import Role, EmployeeStatus
from app.utils.datetime_utils import iso_local


class EmployeeCreate(BaseModel):
    """Schema for creating an employee; the code is generated from the role when omitted"""
    name: str = Field(..., min_length=1, description="Employee name")
    role: Role = Field(..., description="Employee role (cannot be changed later)")
    email: Optional[str] = Field(None, description="Employee email (unique)")
    phone: Optional[str] = Field(None, description="Employee phone number")
    employee_code: Optional[str] = Field(None, description="Explicit employee code, e.g. FE007")
    password: Optional[str] = Field(None, min_length=6, max_length=72, description="Employee password (optional)")

    @field_validator('password', mode='before')
    @classmethod
    def validate_password(cls, v):
        """Normalize and validate password"""
        if v is None:
            return None

        v = v.strip()
        if not v:
            return None

        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")

        # bcrypt limit
        if len(v.encode('utf-8')) > 72:
            raise ValueError("Password cannot be longer than 72 bytes when encoded as UTF-8")

        return v


class EmployeeStatusUpdate(BaseModel):
    """Schema for changing an employee's status"""
    status: EmployeeStatus


class EmployeeOut(BaseModel):
    """Schema for employee output. Datetimes in the local timezone."""
    id: int
    employee_code: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    role: str
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class NextCodeOut(BaseModel):
    role: Role
    employee_code: str
