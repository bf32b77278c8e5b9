"""
Database models
"""
from app.models.employee import Employee, Role, EmployeeStatus
from app.models.attendance import Attendance, AttendanceStatus, ApprovalStatus, AttendanceSource
from app.models.task import Task, TaskStatus
from app.models.system_config import SystemConfiguration
from app.models.daily_location import DailyLocation
from app.models.notification import Notification
from app.models.audit_log import AuditLog

__all__ = [
    "Employee",
    "Role",
    "EmployeeStatus",
    "Attendance",
    "AttendanceStatus",
    "ApprovalStatus",
    "AttendanceSource",
    "Task",
    "TaskStatus",
    "SystemConfiguration",
    "DailyLocation",
    "Notification",
    "AuditLog",
]
