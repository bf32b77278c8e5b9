"""
Task model: assigned to one employee, worked through check-in/check-out
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    location = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value)
    check_in = Column(DateTime(timezone=True), nullable=True)
    check_out = Column(DateTime(timezone=True), nullable=True)
    ticket_id = Column(Integer, nullable=True)  # support ticket this task was converted from
    assigned_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    # At most one IN_PROGRESS task per employee
    __table_args__ = (
        Index(
            "uq_tasks_one_in_progress_per_employee",
            "employee_id",
            unique=True,
            sqlite_where=text("status = 'IN_PROGRESS'"),
            postgresql_where=text("status = 'IN_PROGRESS'"),
        ),
    )

    employee = relationship("Employee", foreign_keys=[employee_id], backref="tasks")
