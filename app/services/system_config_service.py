"""
System configuration service: key/value settings stored in system_configurations.

Reads go through an in-process cache keyed by config key; every write through
this service invalidates the key it touched. The service is handed to routes
through the get_config_service dependency and passed explicitly to the
services that need it (attendance geofence), never looked up globally.
"""
import logging
from typing import Dict, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.constants import CONFIG_KEY_OFFICE_LOCATION, DEFAULT_OFFICE_LOCATION_NAME
from app.models.system_config import SystemConfiguration
from app.services.audit_service import log_audit

_log = logging.getLogger(__name__)

_MISSING = object()


class ConfigEntry(BaseModel):
    key: str
    value: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: Optional[int] = None


class OfficeLocation(BaseModel):
    name: str
    latitude: float
    longitude: float
    radius: Optional[int] = None


def _to_entry(row: SystemConfiguration) -> ConfigEntry:
    return ConfigEntry(
        key=row.key,
        value=row.value,
        latitude=float(row.latitude) if row.latitude is not None else None,
        longitude=float(row.longitude) if row.longitude is not None else None,
        radius=row.radius,
    )


class SystemConfigService:
    def __init__(self) -> None:
        self._cache: Dict[str, Optional[ConfigEntry]] = {}

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one cached key, or the whole cache when key is None."""
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    def get_entry(self, db: Session, key: str) -> Optional[ConfigEntry]:
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        row = db.query(SystemConfiguration).filter(SystemConfiguration.key == key).first()
        entry = _to_entry(row) if row else None
        self._cache[key] = entry
        return entry

    def get_config(self, db: Session, key: str) -> Optional[str]:
        entry = self.get_entry(db, key)
        return entry.value if entry else None

    def _upsert(
        self,
        db: Session,
        key: str,
        value: str,
        actor_id: Optional[int] = None,
        **coords,
    ) -> ConfigEntry:
        row = db.query(SystemConfiguration).filter(SystemConfiguration.key == key).first()
        if row is None:
            row = SystemConfiguration(key=key, value=value, **coords)
            db.add(row)
        else:
            row.value = value
            for field, field_value in coords.items():
                setattr(row, field, field_value)
        db.commit()
        db.refresh(row)
        self.invalidate(key)
        _log.info("System config updated: key=%s", key)

        if actor_id is not None:
            log_audit(
                db=db,
                actor_id=actor_id,
                action="SYSTEM_CONFIG_UPDATE",
                entity_type="system_configurations",
                entity_id=row.id,
                meta={"key": key, "value": value, **coords},
            )
        return _to_entry(row)

    def set_config(self, db: Session, key: str, value: str, actor_id: Optional[int] = None) -> ConfigEntry:
        return self._upsert(db, key, value, actor_id=actor_id)

    def get_office_location(self, db: Session) -> str:
        return self.get_config(db, CONFIG_KEY_OFFICE_LOCATION) or DEFAULT_OFFICE_LOCATION_NAME

    def get_office_coordinates(self, db: Session) -> Optional[OfficeLocation]:
        """Office geofence centre, or None when no coordinates are configured."""
        entry = self.get_entry(db, CONFIG_KEY_OFFICE_LOCATION)
        if entry is None or entry.latitude is None or entry.longitude is None:
            return None
        return OfficeLocation(
            name=entry.value,
            latitude=entry.latitude,
            longitude=entry.longitude,
            radius=entry.radius,
        )

    def set_office_coordinates(
        self,
        db: Session,
        name: str,
        latitude: float,
        longitude: float,
        radius: Optional[int] = None,
        actor_id: Optional[int] = None,
    ) -> ConfigEntry:
        return self._upsert(
            db,
            CONFIG_KEY_OFFICE_LOCATION,
            name,
            actor_id=actor_id,
            latitude=latitude,
            longitude=longitude,
            radius=radius,
        )

    def get_all_configs(self, db: Session) -> Dict[str, str]:
        return {row.key: row.value for row in db.query(SystemConfiguration).order_by(SystemConfiguration.key).all()}


config_service = SystemConfigService()
