"""
Daily site assignment for a field engineer (the day's geofence)
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class DailyLocation(Base):
    __tablename__ = "daily_locations"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    address = Column(String, nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    radius = Column(Integer, nullable=True)  # meters
    assigned_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_daily_location_employee_date"),
    )

    employee = relationship("Employee", foreign_keys=[employee_id])
