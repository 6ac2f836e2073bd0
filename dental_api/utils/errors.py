"""Application exception hierarchy.

Each class carries the HTTP status and the ``error_type`` string rendered by
``dental_api.middleware.error_handler``. Raise them from routes and services;
never build error responses by hand.
"""

from fastapi import HTTPException


class APIError(HTTPException):
    status_code = 500
    error_type = "internal_error"

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(status_code=status_code or type(self).status_code, detail=detail)


class ValidationError(APIError):
    status_code = 400
    error_type = "validation_error"


class NotFoundError(APIError):
    status_code = 404
    error_type = "not_found"


class ConflictError(APIError):
    status_code = 409
    error_type = "conflict"


class AuthError(APIError):
    status_code = 401
    error_type = "authentication_error"


class InvalidTokenError(AuthError):
    error_type = "invalid_token"


class ForbiddenError(AuthError):
    status_code = 403
    error_type = "forbidden"


class UpstreamError(APIError):
    """A Supabase call failed; the upstream message is passed through."""

    status_code = 500
    error_type = "upstream_error"
