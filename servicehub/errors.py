"""
Errors raised by request handlers.

Each carries the HTTP status the API maps it to; the message is returned
to the caller as ``detail``.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ServiceError):
    status_code = 400


class NotAuthenticated(ServiceError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class MetaApiError(ServiceError):
    """A call to the Meta Graph API failed or returned an error payload."""

    status_code = 502
