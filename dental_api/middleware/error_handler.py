"""Global exception handlers that map errors to the JSON error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from supabase import PostgrestAPIError, StorageException

from dental_api.utils.errors import APIError, UpstreamError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(status: int, error_type: str, message: str, request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "status": "error",
            "error": {
                "type": error_type,
                "message": message,
                "request_id": request_id,
            },
        },
        headers={"X-Request-ID": request_id},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        return _error_response(400, "validation_error", messages, _request_id(request))

    @app.exception_handler(APIError)
    async def api_error(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.error_type, request.method, request.url.path, exc.detail)
        return _error_response(exc.status_code, exc.error_type, exc.detail, _request_id(request))

    @app.exception_handler(PostgrestAPIError)
    async def database_error(request: Request, exc: PostgrestAPIError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(500, UpstreamError.error_type, exc.message or "Database request failed", _request_id(request))

    @app.exception_handler(StorageException)
    async def storage_error(request: Request, exc: StorageException):
        logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(500, UpstreamError.error_type, str(exc), _request_id(request))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        type_map = {
            401: "authentication_error",
            403: "forbidden",
            404: "not_found",
            405: "method_not_allowed",
            409: "conflict",
        }
        error_type = type_map.get(exc.status_code, "http_error")
        return _error_response(exc.status_code, error_type, str(exc.detail), _request_id(request))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred", _request_id(request))
