"""
Application error taxonomy.

Every error carries the HTTP status the API surfaces it with:
- validation errors are raised before any backend call
- backend errors are logged and surfaced, never retried automatically
- device errors leave the camera flow in a no-stream state
- verification errors carry the verification payload back to the caller
"""

from typing import Any, Dict, Optional


class TrinetraError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message}
        if self.payload:
            body.update(self.payload)
        return body


# (a) validation

class ValidationFailed(TrinetraError, ValueError):
    status_code = 400


class MissingEvidenceError(ValidationFailed):
    """A photo reference is mandatory and was not supplied."""


class UnsupportedMediaError(ValidationFailed):
    status_code = 415


# (b) backend

class BackendError(TrinetraError):
    status_code = 502


class UploadFailedError(BackendError):
    pass


class NotFoundError(TrinetraError):
    status_code = 404


# (c) device

class DeviceError(TrinetraError):
    status_code = 503


class CameraUnavailableError(DeviceError):
    pass


class CameraBusyError(DeviceError):
    pass


# (d) identity and verification

class AuthenticationFailed(TrinetraError):
    status_code = 401


class NotAuthorized(TrinetraError):
    status_code = 403


class VerificationDenied(NotAuthorized):
    pass
