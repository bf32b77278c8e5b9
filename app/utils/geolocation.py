"""
Geolocation helpers: Haversine distance for geofence checks plus reverse/forward
geocoding against a Nominatim-compatible HTTP API.

Geocoding is best effort. Any provider failure (timeout, non-2xx, bad JSON) is
logged and degrades to None or a formatted-coordinates string; nothing here
raises into the caller and nothing is retried. The provider rate-limits
aggressively, so callers should not geocode on hot paths without caching.
"""
import logging
import math
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000

_EXACT_TYPES = {"house", "building", "residential", "yes", "commercial", "apartments"}
_STREET_TYPES = {"street", "road", "pedestrian"}
_NEIGHBOURHOOD_TYPES = {"neighbourhood", "suburb", "quarter"}
_CITY_TYPES = {"city", "town", "village", "municipality"}
_REGION_TYPES = {"state", "region", "province", "county"}
_COUNTRY_TYPES = {"country"}


class LocationData(BaseModel):
    address: str = ""
    city: str = ""
    state: str = ""


class ForwardGeocodeResult(BaseModel):
    latitude: float
    longitude: float
    display_name: Optional[str] = None
    osm_type: Optional[str] = None
    osm_class: Optional[str] = None
    type: Optional[str] = None
    granularity: str = "unknown"  # exact/street/neighbourhood/city/region/country/unknown
    estimated_radius_meters: Optional[int] = None


def calculate_distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (Haversine) distance in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def has_valid_coordinates(lat: Any, lon: Any) -> bool:
    """True for numeric, in-range coordinates; (0, 0) is treated as an unset placeholder."""
    if lat is None or lon is None:
        return False
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return False
    return not (lat == 0 and lon == 0)


def format_coordinates(lat: float, lon: float) -> str:
    return f"{float(lat):.6f}, {float(lon):.6f}"


def granularity_for(result_type: Optional[str], result_class: Optional[str] = None) -> str:
    """Map a provider result type to a coarse granularity bucket."""
    if result_type in _EXACT_TYPES:
        return "exact"
    if result_type in _STREET_TYPES:
        return "street"
    if result_type in _NEIGHBOURHOOD_TYPES:
        return "neighbourhood"
    if result_type in _CITY_TYPES:
        return "city"
    if result_type in _REGION_TYPES:
        return "region"
    if result_type in _COUNTRY_TYPES:
        return "country"
    if result_class == "place" and result_type == "house":
        return "exact"
    return "unknown"


def estimate_radius_from_bounding_box(bounding_box: Any) -> Optional[int]:
    """Half the diagonal of a [lat_min, lat_max, lon_min, lon_max] box, in meters."""
    if not bounding_box or len(bounding_box) != 4:
        return None
    try:
        lat_min, lat_max, lon_min, lon_max = (float(v) for v in bounding_box)
    except (TypeError, ValueError):
        return None
    return round(calculate_distance_meters(lat_min, lon_min, lat_max, lon_max) / 2)


def _provider_get(path: str, params: Dict[str, Any]) -> Optional[Any]:
    """GET a provider endpoint and return decoded JSON, or None on any failure."""
    if not settings.GEOCODING_ENABLED:
        return None
    url = f"{settings.GEOCODING_BASE_URL.rstrip('/')}/{path}"
    try:
        response = requests.get(
            url,
            params={"format": "json", "addressdetails": 1, **params},
            headers={"User-Agent": settings.GEOCODING_USER_AGENT},
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        logger.warning("Geocoding request to %s failed: %s", path, e)
    except ValueError as e:
        logger.warning("Geocoding response from %s was not JSON: %s", path, e)
    return None


def get_location_from_coordinates(lat: float, lon: float) -> Optional[LocationData]:
    """Reverse geocode coordinates to address/city/state."""
    data = _provider_get("reverse", {"lat": lat, "lon": lon})
    if not isinstance(data, dict) or not data.get("address"):
        return None
    address = data["address"]
    return LocationData(
        address=data.get("display_name") or "",
        city=address.get("city") or address.get("town") or address.get("village") or address.get("municipality") or "",
        state=address.get("state") or address.get("region") or address.get("province") or "",
    )


def get_human_readable_location(lat: float, lon: float) -> str:
    """Reverse-geocoded place name, or "Coordinates: lat, lon" when the lookup fails."""
    location = get_location_from_coordinates(lat, lon)
    if location is None:
        return f"Coordinates: {format_coordinates(lat, lon)}"
    parts = [p for p in (location.address, location.city, location.state) if p]
    return ", ".join(parts) or f"Coordinates: {format_coordinates(lat, lon)}"


def get_coordinates_from_location(location_text: str) -> Optional[ForwardGeocodeResult]:
    """Forward geocode free text to coordinates with a granularity estimate."""
    results = _provider_get("search", {"q": location_text, "limit": 1})
    if not isinstance(results, list) or not results:
        return None
    result = results[0]
    try:
        latitude = float(result["lat"])
        longitude = float(result["lon"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Geocoding result for %r has no usable coordinates", location_text)
        return None
    return ForwardGeocodeResult(
        latitude=latitude,
        longitude=longitude,
        display_name=result.get("display_name"),
        osm_type=result.get("osm_type"),
        osm_class=result.get("class"),
        type=result.get("type"),
        granularity=granularity_for(result.get("type"), result.get("class")),
        estimated_radius_meters=estimate_radius_from_bounding_box(result.get("boundingbox")),
    )
