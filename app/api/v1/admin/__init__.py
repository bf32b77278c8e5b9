"""Admin API (ADMIN role only)."""
from fastapi import APIRouter
from app.api.v1.admin import attendance as admin_attendance
from app.api.v1.admin import tasks as admin_tasks
from app.api.v1.admin import daily_locations as admin_daily_locations

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_attendance.router, prefix="/attendance", tags=["admin-attendance"])
admin_router.include_router(admin_tasks.router, prefix="/tasks", tags=["admin-tasks"])
admin_router.include_router(admin_daily_locations.router, prefix="/daily-locations", tags=["admin-daily-locations"])
