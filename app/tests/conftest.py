"""
Pytest configuration and fixtures
"""
import os

# Required settings must exist before app.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ.setdefault("APP_ENV", "local")
os.environ["GEOCODING_ENABLED"] = "false"

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.core.deps import get_db  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.models import Employee, EmployeeStatus, Role  # noqa: E402,F401  (registers models)
from app.services.system_config_service import config_service  # noqa: E402


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 08:30 in Asia/Kolkata, before the default 09:00 cutoff
MORNING = datetime(2026, 3, 2, 3, 0, tzinfo=timezone.utc)
# 10:00 in Asia/Kolkata
LATE_MORNING = datetime(2026, 3, 2, 4, 30, tzinfo=timezone.utc)

# Office used by the geofence tests
OFFICE_LAT, OFFICE_LNG = 12.9716, 77.5946
# roughly 1.1 km north of the office
FAR_LAT, FAR_LNG = 12.9816, 77.5946


@pytest.fixture(autouse=True)
def fresh_config_cache():
    """The config service is process-wide; start every test with an empty cache"""
    config_service.invalidate()
    yield
    config_service.invalidate()


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_employee(db, code, name, role, password="testpass123", status=EmployeeStatus.ACTIVE):
    employee = Employee(
        employee_code=code,
        name=name,
        role=role.value,
        status=status.value,
        password_hash=hash_password(password),
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@pytest.fixture
def admin(db):
    return _make_employee(db, "ADM001", "Admin User", Role.ADMIN, password="adminpass123")


@pytest.fixture
def field_engineer(db):
    return _make_employee(db, "FE001", "Field Engineer", Role.FIELD_ENGINEER)


@pytest.fixture
def office_employee(db):
    return _make_employee(db, "IO001", "Office Employee", Role.IN_OFFICE)


@pytest.fixture
def make_employee(db):
    """Factory for extra employees"""
    def factory(code, role, name=None, status=EmployeeStatus.ACTIVE):
        return _make_employee(db, code, name or code, role, status=status)
    return factory


def get_auth_token(client, employee_code, password):
    """Helper to get auth token"""
    response = client.post(
        "/api/v1/auth/login",
        json={"employee_code": employee_code, "password": password}
    )
    return response.json()["access_token"]


def auth_headers(client, employee_code, password="testpass123"):
    return {"Authorization": f"Bearer {get_auth_token(client, employee_code, password)}"}


@pytest.fixture
def admin_headers(client, admin):
    return auth_headers(client, "ADM001", "adminpass123")


@pytest.fixture
def office_with_geofence(db):
    """Office location with a 200 m geofence"""
    config_service.set_office_coordinates(db, "HQ", OFFICE_LAT, OFFICE_LNG, radius=200)
    return config_service.get_office_coordinates(db)
