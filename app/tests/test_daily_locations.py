"""
Tests for field engineers' daily site assignments
"""
from datetime import date

from fastapi import status

from app.core.errors import ErrorKind
from app.services import daily_location_service
from app.utils.geolocation import ForwardGeocodeResult

DAY = date(2026, 3, 2)


def test_assign_with_coordinates(db, field_engineer, admin):
    result = daily_location_service.assign_daily_location(
        db,
        employee_id=field_engineer.id,
        day=DAY,
        actor_id=admin.id,
        address="Plant 3",
        latitude=12.97,
        longitude=77.59,
        radius=120,
    )
    assert result.success is True
    assert result.data["radius"] == 120

    site = daily_location_service.get_daily_location(db, field_engineer.id, DAY)
    assert float(site.latitude) == 12.97


def test_reassign_replaces_site(db, field_engineer, admin):
    for address, lat in (("Plant 3", 12.97), ("Plant 4", 12.99)):
        daily_location_service.assign_daily_location(
            db, employee_id=field_engineer.id, day=DAY, actor_id=admin.id,
            address=address, latitude=lat, longitude=77.59,
        )
    site = daily_location_service.get_daily_location(db, field_engineer.id, DAY)
    assert site.address == "Plant 4"


def test_address_only_is_geocoded_with_coarse_radius(db, field_engineer, admin, monkeypatch):
    monkeypatch.setattr(
        daily_location_service,
        "get_coordinates_from_location",
        lambda text: ForwardGeocodeResult(
            latitude=12.9716, longitude=77.5946, type="city", granularity="city", estimated_radius_meters=17000,
        ),
    )
    result = daily_location_service.assign_daily_location(
        db, employee_id=field_engineer.id, day=DAY, actor_id=admin.id, address="Bengaluru",
    )
    assert result.data["latitude"] == 12.9716
    assert result.data["radius"] == 17000


def test_address_geocoding_failure_stores_address_only(db, field_engineer, admin):
    # geocoding is disabled in tests
    result = daily_location_service.assign_daily_location(
        db, employee_id=field_engineer.id, day=DAY, actor_id=admin.id, address="Somewhere",
    )
    assert result.success is True
    assert result.data["latitude"] is None


def test_only_field_engineers_get_sites(db, office_employee, admin):
    result = daily_location_service.assign_daily_location(
        db, employee_id=office_employee.id, day=DAY, actor_id=admin.id, latitude=12.97, longitude=77.59,
    )
    assert result.error == ErrorKind.NOT_ALLOWED.value


def test_daily_location_endpoints(client, field_engineer, admin_headers):
    response = client.put(
        "/api/v1/admin/daily-locations",
        json={"employee_id": field_engineer.id, "date": "2026-03-02", "address": "Plant 3",
              "latitude": 12.97, "longitude": 77.59, "radius": 80},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK

    found = client.get(
        f"/api/v1/admin/daily-locations/{field_engineer.id}", params={"date": "2026-03-02"}, headers=admin_headers
    )
    assert found.json()["data"]["address"] == "Plant 3"

    missing = client.get(
        f"/api/v1/admin/daily-locations/{field_engineer.id}", params={"date": "2026-03-03"}, headers=admin_headers
    )
    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert missing.json()["error"] == "NotFound"


def test_daily_location_requires_address_or_coordinates(client, field_engineer, admin_headers):
    response = client.put(
        "/api/v1/admin/daily-locations",
        json={"employee_id": field_engineer.id},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
