"""
System configuration schemas
"""
from typing import Optional
from pydantic import BaseModel, Field


class OfficeLocationUpdate(BaseModel):
    """Schema for setting the office location and its geofence"""
    name: str = Field(..., min_length=1, max_length=255, description="Office name or address")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius: Optional[int] = Field(None, gt=0, le=100000, description="Geofence radius in meters")


class ConfigValueUpdate(BaseModel):
    value: str = Field(..., max_length=2000)
