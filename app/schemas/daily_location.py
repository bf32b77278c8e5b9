"""
Daily site assignment schemas
"""
import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class DailyLocationAssign(BaseModel):
    """Schema for assigning a field engineer's site for a day (defaults to today)"""
    employee_id: int
    date: Optional[datetime.date] = None
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius: Optional[int] = Field(None, gt=0, le=100000, description="Geofence radius in meters")

    @model_validator(mode="after")
    def _address_or_coordinates(self) -> "DailyLocationAssign":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be sent together")
        if not self.address and self.latitude is None:
            raise ValueError("address or coordinates are required")
        return self
