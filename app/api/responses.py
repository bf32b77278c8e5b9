"""
Response shaping for service results: 2xx on success, 400 on business-rule failure.
"""
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.services.result import ServiceResult


def to_response(result: ServiceResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    code = success_status if result.success else status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=jsonable_encoder(result.model_dump(exclude_none=True)))
