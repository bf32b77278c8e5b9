"""
Uniform service result: {success, message, error?, data?}
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel

from app.core.errors import ErrorKind


class ServiceResult(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "ServiceResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, data: Optional[Dict[str, Any]] = None) -> "ServiceResult":
        return cls(success=False, message=message, error=kind.value, data=data)
