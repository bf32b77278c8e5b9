"""
Central error handling for the field operations backend

Business-rule failures are returned by services as ServiceResult objects (see
app/services/result.py) and never raised; the handlers below cover HTTP auth
errors, request validation and unexpected exceptions. Every error body has the
same shape: {"success": false, "error": <kind>, "message": <text>}.
"""
import enum
import logging
import traceback

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NotFound"
    NOT_ALLOWED = "NotAllowed"
    VALIDATION_ERROR = "ValidationError"
    LOCKED_ATTENDANCE = "LockedAttendance"
    ATTEMPTS_EXHAUSTED = "AttemptsExhausted"
    ALREADY_CHECKED_IN = "AlreadyCheckedIn"
    ATTENDANCE_REJECTED = "AttendanceRejected"
    NOT_CHECKED_IN = "NotCheckedIn"
    ALREADY_CHECKED_OUT = "AlreadyCheckedOut"
    LOCATION_REQUIRED = "LocationRequired"
    OUTSIDE_GEOFENCE = "OutsideGeofence"
    ATTENDANCE_NOT_APPROVED = "AttendanceNotApproved"
    ALREADY_IN_PROGRESS = "AlreadyInProgress"
    ALREADY_COMPLETED = "AlreadyCompleted"
    NOT_IN_PROGRESS = "NotInProgress"
    ANOTHER_TASK_ACTIVE = "AnotherTaskActive"
    INVALID_TRANSITION = "InvalidTransition"


def _error_body(kind: str, message, path: str) -> dict:
    return {
        "success": False,
        "error": kind,
        "message": message,
        "path": path,
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException (auth/permission failures) with the uniform error shape

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    kind = {
        status.HTTP_401_UNAUTHORIZED: "Unauthorized",
        status.HTTP_403_FORBIDDEN: "Forbidden",
        status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND.value,
    }.get(exc.status_code, "HttpError")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(kind, exc.detail, str(request.url.path)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError as a 400 with the uniform error shape

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    body = _error_body(ErrorKind.VALIDATION_ERROR.value, "Invalid request data", str(request.url.path))
    if settings.APP_ENV != "prod":
        # sanitize for JSON: e.g. ctx.error ValueError -> str
        errors = []
        for e in exc.errors():
            err = dict(e)
            if "ctx" in err and isinstance(err["ctx"], dict):
                err["ctx"] = {
                    k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                    for k, v in err["ctx"].items()
                }
            errors.append(err)
        body["errors"] = errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions as a 500

    Does not leak internal error details in production.
    """
    from app.core.config import settings

    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("InternalError", "Internal server error", str(request.url.path)),
        )

    body = _error_body("InternalError", str(exc), str(request.url.path))
    if settings.APP_ENV == "local":
        body["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
