# backend/barbershop/api_errors.py
"""
HTTP mapping of rejections and scheduling errors.

  *_NOT_FOUND                                   → 404
  SLOT_FULL, ALREADY_*, CANNOT_*, INVALID_STATUS*,
  CONCURRENT_MODIFICATION                       → 409
  PERSISTENCE_UNAVAILABLE                       → 503
  everything else (INVALID_*, PAST_DATE, ...)   → 400

Body: {"detail": {"error_code": ..., "message": ...}}
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from .errors import Rejection, SchedulingError

CONFLICT_CODES = {
    "SLOT_FULL",
    "CONCURRENT_MODIFICATION",
    "INVALID_STATUS",
    "INVALID_STATUS_TRANSITION",
}


def status_for(error_code: str) -> int:
    if error_code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if error_code == "PERSISTENCE_UNAVAILABLE":
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if error_code in CONFLICT_CODES or error_code.startswith(("ALREADY_", "CANNOT_")):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def rejection_error(rejection: Rejection) -> HTTPException:
    return HTTPException(
        status_code=status_for(rejection.error_code),
        detail={"error_code": rejection.error_code, "message": rejection.message},
    )


def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc.error_code),
        content={"detail": {"error_code": exc.error_code, "message": exc.message}},
    )
