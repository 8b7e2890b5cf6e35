"""Typed failures raised by the authentication workflow and its adapters."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFLICT = "conflict"
    INVALID_CODE = "invalid_code"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    DELIVERY_FAILURE = "delivery_failure"
    INVALID_REQUEST = "invalid_request"
    STORE_UNAVAILABLE = "store_unavailable"


class AuthError(Exception):
    """Base class for authentication-related failures.

    ``reason`` is safe to show to the caller; ``kind`` lets the transport pick
    a status code without inspecting the concrete class.
    """

    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConflictError(AuthError):
    kind = ErrorKind.CONFLICT


class InvalidCodeError(AuthError):
    kind = ErrorKind.INVALID_CODE


class NotFoundError(AuthError):
    kind = ErrorKind.NOT_FOUND


class UnauthorizedError(AuthError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, reason: str, *, cause: str = ""):
        super().__init__(reason)
        # Internal only; never rendered to the caller.
        self.cause = cause


class DeliveryError(AuthError):
    kind = ErrorKind.DELIVERY_FAILURE


class InvalidRequestError(AuthError):
    kind = ErrorKind.INVALID_REQUEST


class StoreUnavailableError(AuthError):
    kind = ErrorKind.STORE_UNAVAILABLE
