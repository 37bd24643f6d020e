"""
API error hierarchy.

Services raise these; `main.py` renders them into the response envelope.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    status_code = 500
    error_code = "api_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ApiError):
    """
    Malformed or missing input. Raised before any storage call.
    """

    status_code = 400
    error_code = "validation_error"


class NotFoundError(ApiError):
    status_code = 404
    error_code = "not_found"


class ConflictError(ApiError):
    """
    Uniqueness or referential violation, detected by a probe or by the
    storage constraint itself.
    """

    status_code = 400
    error_code = "conflict"


class BackendError(ApiError):
    status_code = 500
    error_code = "backend_error"


class AuthError(ApiError):
    status_code = 401
    error_code = "unauthorized"
