"""
services.errors - Exceptions raised by the service layer.

The API blueprint maps each class to an HTTP status (see api.errors).
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for service-layer failures."""
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class PermissionDenied(ServiceError):
    status_code = 403


class ValidationError(ServiceError):
    """
    Raised when submitted data fails validation.

    ``errors`` maps field name → human-readable message.
    """
    status_code = 400

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}
