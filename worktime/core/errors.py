from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class WorktimeError(Exception):
    """Base exception for work-time rule violations."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PolicyDenied(WorktimeError):
    """The start gate refused to start a timer on the requested day."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.code = reason


class ConflictingState(WorktimeError):
    """Timer already running on start, or nothing running on pause/split/stop."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class NotFound(WorktimeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Forbidden(NotFound):
    """The referenced record exists but belongs to someone else."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class InvalidInput(WorktimeError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_input"


async def _worktime_error_handler(request: Request, exc: WorktimeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorktimeError, _worktime_error_handler)
