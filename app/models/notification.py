"""
Admin-facing notification model
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, Text
from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)  # e.g. ATTENDANCE_APPROVAL_REQUEST
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    # Set explicitly by the service; SQLite server defaults drop the timezone
    created_at = Column(DateTime(timezone=True), nullable=False)
