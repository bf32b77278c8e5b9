"""
Field operations backend - main application entry point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.core.logging import setup_logging
from app.core.security import hash_password
from app.db.session import SessionLocal, create_sqlite_tables
from app.models.employee import Employee, EmployeeStatus, Role
from app.services.employee_service import next_employee_code

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        return url
    if parsed.password:
        netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
        if parsed.port:
            netloc += f":{parsed.port}"
        return urlunparse(parsed._replace(netloc=netloc))
    return url


app = FastAPI(
    title="Field Operations Backend",
    description="Attendance approval, task check-in/out and geofencing for field and in-office staff",
    version=settings.VERSION or "1.0.0"
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_database() -> None:
    """Log DATABASE_URL and create tables for local SQLite runs."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    create_sqlite_tables()


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """
    Create the initial admin if no ADMIN employee exists.
    This ensures the system always has at least one admin user.
    """
    db = SessionLocal()
    try:
        if db.query(Employee).filter(Employee.role == Role.ADMIN.value).first():
            logger.info("Admin user already exists, skipping initial bootstrap")
            return

        code = next_employee_code(db, Role.ADMIN)
        db.add(Employee(
            employee_code=code,
            name="System Administrator",
            email=settings.INITIAL_ADMIN_EMAIL,
            role=Role.ADMIN.value,
            status=EmployeeStatus.ACTIVE.value,
            password_hash=hash_password(settings.INITIAL_ADMIN_PASSWORD),
        ))
        db.commit()
        logger.info("Initial admin user created: employee_code=%s", code)
        logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    except OperationalError as e:
        # tables not migrated yet
        db.rollback()
        logger.warning("Database not ready, skipping initial admin bootstrap: %s", e)
    finally:
        db.close()
