from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base error raised by repositories and translated to an HTTP error envelope."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class MalformedIdentifier(ServiceError, ValueError):
    """Raised when an identifier string has the wrong prefix or an invalid UUID part."""

    status_code = 400
    code = "malformed_identifier"


class Unauthorized(ServiceError):
    status_code = 401
    code = "unauthorized"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class Conflict(ServiceError):
    """Raised on a storage constraint violation (duplicate row, dangling foreign key)."""

    status_code = 500
    code = "conflict"


class InternalError(ServiceError):
    status_code = 500
    code = "internal_error"
