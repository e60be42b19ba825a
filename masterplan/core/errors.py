import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(AppError):
    """Missing or malformed fields."""

    status_code = 400


class ConflictError(AppError):
    """Duplicate doc_id. Reported as 400 like every other rejected create."""

    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class UploadError(AppError):
    """File rejected for size or type."""

    status_code = 400


class InternalError(AppError):
    status_code = 500


def err_body(message: str, errors: list | None = None, detail: str | None = None) -> dict:
    body = {"code": "ERR", "success": False, "message": message, "data": None}
    if errors:
        body["errors"] = errors
    if detail:
        body["error"] = detail
    return body


def register_error_handlers(app: FastAPI, debug: bool = False) -> None:
    @app.exception_handler(AppError)
    def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=err_body(exc.message, exc.errors))

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=err_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(p) for p in e.get("loc", ())[1:]) or None,
                "message": e.get("msg"),
            }
            for e in exc.errors()
        ]
        return JSONResponse(status_code=400, content=err_body("Data validation failed", errors))

    @app.exception_handler(Exception)
    def unhandled_handler(request: Request, exc: Exception):
        logger.error(f"✗ {request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=err_body("Internal server error", detail=str(exc) if debug else None),
        )
