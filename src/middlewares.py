import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def log_request(method: str, path: str) -> None:
    """Simple request logging"""
    logger.info(f"{method} {path}")


def log_error(error: str, method: str, path: str) -> None:
    """Simple error logging"""
    logger.error(f"Error in {method} {path}: {error}")


def register_middlewares(app: FastAPI) -> None:
    """Request logging plus the ``{"error": ...}`` envelope for failures."""

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        log_request(request.method, request.url.path)
        try:
            return await call_next(request)
        except Exception as e:
            log_error(str(e), request.method, request.url.path)
            return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            log_error(str(exc.detail), request.method, request.url.path)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected body for {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})
