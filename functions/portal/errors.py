"""
Domain errors raised by the portal services.

Each error carries the HTTP status the API answers with; the app registers a
single handler for `PortalError`.
"""

from __future__ import annotations


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PortalError):
    status_code = 404


class InvalidRecordError(PortalError):
    status_code = 422


class InvalidUploadError(PortalError):
    status_code = 400


class ConflictError(PortalError):
    status_code = 409


class InvalidStateError(PortalError):
    status_code = 409


class AuthenticationError(PortalError):
    status_code = 401


class PermissionDeniedError(PortalError):
    status_code = 403


class EntityNotSupportedError(PortalError):
    status_code = 400
