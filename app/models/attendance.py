"""
Daily attendance model: one row per employee per local calendar day
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Text, Boolean, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NOT_REQUIRED = "NOT_REQUIRED"


class AttendanceSource(str, enum.Enum):
    SELF = "SELF"
    ADMIN = "ADMIN"


class Attendance(Base):
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)  # local calendar day (settings.APP_TIMEZONE)
    clock_in = Column(DateTime(timezone=True), nullable=True)  # server UTC
    clock_out = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default=AttendanceStatus.ABSENT.value)
    approval_status = Column(String, nullable=False, default=ApprovalStatus.PENDING.value)
    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    approval_reason = Column(Text, nullable=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    locked = Column(Boolean, nullable=False, default=False)
    locked_reason = Column(String, nullable=True)
    location = Column(String, nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    ip_address = Column(String, nullable=True)
    device_info = Column(String, nullable=True)
    photo = Column(String, nullable=True)
    source = Column(String, nullable=False, default=AttendanceSource.SELF.value)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    employee = relationship("Employee", foreign_keys=[employee_id], backref="attendances")
