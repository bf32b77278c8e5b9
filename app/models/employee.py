"""
Employee model
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class Role(str, enum.Enum):
    FIELD_ENGINEER = "FIELD_ENGINEER"
    IN_OFFICE = "IN_OFFICE"
    ADMIN = "ADMIN"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


# Roles that clock in for the day and work on tasks
ATTENDANCE_ROLES = (Role.FIELD_ENGINEER.value, Role.IN_OFFICE.value)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    employee_code = Column(String, unique=True, nullable=False, index=True)  # FE001 / IO001 / ADM001
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False)  # set at creation, never updated
    status = Column(String, nullable=False, default=EmployeeStatus.ACTIVE.value)
    password_hash = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value
