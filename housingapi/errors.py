"""Error payloads returned by the API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ErrorResponse:
    """Detailed error body sent to clients."""

    status_code: int
    error_code: str
    message: str

    def to_dict(self) -> dict:
        return {
            "status_code": self.status_code,
            "error_code": self.error_code,
            "message": self.message,
        }


class ErrorKind(Enum):
    """The HTTP error categories the API reports."""

    BAD_REQUEST = (400, "BadRequest")
    UNAUTHORIZED = (401, "Unauthorized")
    NOT_FOUND = (404, "NotFound")
    UNPROCESSABLE_ENTITY = (422, "UnprocessableEntity")

    def __init__(self, status_code: int, error_code: str) -> None:
        self.status_code = status_code
        self.error_code = error_code

    def error(self, message: str) -> ErrorResponse:
        """Build an error response of this kind carrying ``message``."""
        return ErrorResponse(self.status_code, self.error_code, message)


def bad_request(message: str) -> ErrorResponse:
    return ErrorKind.BAD_REQUEST.error(message)


def unauthorized(message: str) -> ErrorResponse:
    return ErrorKind.UNAUTHORIZED.error(message)


def not_found(message: str) -> ErrorResponse:
    return ErrorKind.NOT_FOUND.error(message)


def unprocessable_entity(message: str) -> ErrorResponse:
    return ErrorKind.UNPROCESSABLE_ENTITY.error(message)