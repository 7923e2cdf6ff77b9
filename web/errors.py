"""Structured error responses for JSON endpoints.

JSON endpoints answer errors with ``{"title": ..., "message": ...}``.
"""

from fastapi import status as http_status
from fastapi.responses import JSONResponse

from cratedocs.errors import (
    AlreadyQueuedError,
    CratedocsError,
    UnauthorizedError,
    VersionNotFoundError,
)


def json_error(status_code: int, title: str, message: str) -> JSONResponse:
    """Build a structured JSON error response."""
    return JSONResponse(
        status_code=status_code,
        content={"title": title, "message": message},
    )


def error_to_json(error: CratedocsError) -> JSONResponse:
    """Translate a service error into its JSON response."""
    if isinstance(error, UnauthorizedError):
        return json_error(
            http_status.HTTP_401_UNAUTHORIZED, "Unauthorized", error.reason
        )
    if isinstance(error, VersionNotFoundError):
        return json_error(
            http_status.HTTP_404_NOT_FOUND,
            "Version not found",
            "The requested version does not exist",
        )
    if isinstance(error, AlreadyQueuedError):
        return json_error(http_status.HTTP_400_BAD_REQUEST, "Bad request", str(error))
    return json_error(
        http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "The request could not be completed",
    )


__all__ = ["error_to_json", "json_error"]
