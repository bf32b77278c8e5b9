"""
Attendance request schemas (check-in and admin actions).
"""
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.attendance import AttendanceStatus


class CheckInRequest(BaseModel):
    """Schema for daily check-in. Coordinates are required when a geofence applies."""
    location: Optional[str] = Field(None, max_length=500, description="Free-text location from the client")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="GPS latitude")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="GPS longitude")
    photo: Optional[str] = Field(None, description="Selfie reference (URL or stored file name)")
    device_info: Optional[str] = Field(None, max_length=500, description="Client device description")

    @model_validator(mode="after")
    def _coordinates_pair(self) -> "CheckInRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be sent together")
        return self


class ApproveRequest(BaseModel):
    """Schema for approving a pending attendance"""
    reason: Optional[str] = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    """Schema for rejecting a pending attendance; a reason is mandatory"""
    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v.strip()


class ReEnableRequest(BaseModel):
    """Schema for re-enabling check-in after a lockout or rejection"""
    reason: Optional[str] = Field(None, max_length=1000)
    restore_present: bool = Field(default=False, description="Also set status back to PRESENT")


class BypassAttendanceRequest(BaseModel):
    """Schema for admin bypass attendance (audited, skips attempt and geofence checks)"""
    employee_id: int
    status: AttendanceStatus
    location: str = Field(..., min_length=1, max_length=500)
    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason", "location")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()
