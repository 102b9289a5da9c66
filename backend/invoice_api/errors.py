"""Service-level exceptions.

Raised by repositories and services when a request cannot be fulfilled.
The HTTP controllers catch these and translate them into
`HTTPException`s using `http_status`.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class ServiceError(Exception):
    """Base class carrying an `ErrorCode` alongside the message."""

    code: ErrorCode = ErrorCode.INTERNAL
    http_status: int = 500


class InvalidArgumentError(ServiceError):
    """The caller supplied values that are inconsistent with stored data."""

    code = ErrorCode.INVALID_ARGUMENT
    http_status = 400


class NotFoundError(ServiceError):
    """A referenced company or customer does not exist."""

    code = ErrorCode.NOT_FOUND
    http_status = 404


class InternalError(ServiceError):
    """Storage failed or returned data the application cannot interpret."""

    code = ErrorCode.INTERNAL
    http_status = 500
