"""Error taxonomy shared by the workflow engine and the API layer.

Every error carries a machine-readable ``code`` (the error kind), the HTTP
status used when it reaches a client, and a human-readable message.
"""
from typing import Dict, Optional


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400


class AuthError(AppError):
    code = "AUTH_ERROR"
    status_code = 401


class PermissionDeniedError(AppError):
    code = "PERMISSION_ERROR"
    status_code = 403


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = 409


class TaskLockedError(AppError):
    """A status transition was denied by the gate; ``message`` is the reason."""

    code = "TASK_LOCKED"
    status_code = 400
