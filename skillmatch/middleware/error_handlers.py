"""
Global Exception Handler Middleware for the SkillMatch API
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError as PydanticValidationError

from skillmatch.utils.exceptions import (
    ExternalServiceUnavailable,
    SkillMatchBaseException,
    map_to_http_exception,
)
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns exceptions into the {"success": false, "error": ...} envelope"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except SkillMatchBaseException as exc:
            extra = {
                "request_id": request_id,
                "exception_type": exc.__class__.__name__,
                "error_code": exc.error_code,
                "details": exc.details,
                "method": request.method,
                "path": request.url.path
            }
            message = f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}"
            if isinstance(exc, ExternalServiceUnavailable):
                logger.error(message, extra={**extra, "service_name": exc.service_name})
            else:
                logger.warning(message, extra=extra)

            http_exc = map_to_http_exception(exc)
            return error_response(request_id, http_exc.status_code, http_exc.detail)

        except PydanticValidationError as exc:
            logger.error(
                f"Pydantic validation error in {request.method} {request.url.path}: {exc}",
                extra={"request_id": request_id, "method": request.method, "path": request.url.path}
            )
            detail = {
                "error": {"error_code": "VALIDATION_ERROR", "message": "Invalid data format or values"},
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False, include_context=False),
            }
            return error_response(request_id, 400, detail)

        except HTTPException as exc:
            logger.warning(
                f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
                extra={"request_id": request_id, "status_code": exc.status_code}
            )
            return error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                    "method": request.method,
                    "path": request.url.path
                },
                exc_info=True
            )
            # Don't expose internal errors
            detail = {
                "error": {"error_code": "INTERNAL_ERROR", "message": "Internal server error"},
                "message": "An unexpected error occurred. Please try again later.",
            }
            return error_response(request_id, 500, detail)


def error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    content = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": request_id}
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query params get the 400 envelope instead of FastAPI's 422"""
    request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))
    errors = exc.errors()
    logger.warning(
        f"Request validation error in {request.method} {request.url.path}: {len(errors)} error(s)",
        extra={"request_id": request_id, "method": request.method, "path": request.url.path}
    )
    detail = {
        "error": {
            "error_type": "ValidationError",
            "error_code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "details": {"field": ".".join(str(p) for p in errors[0]["loc"]) if errors else None},
        },
        "message": "Invalid request data",
        "validation_errors": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors
        ],
    }
    return error_response(request_id, 400, detail)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging"""

    async def dispatch(self, request: Request, call_next):
        if getattr(request.state, "health_check", False):
            return await call_next(request)

        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))

        logger.debug(
            f"Request: {request.method} {request.url}",
            extra={
                "request_id": request_id,
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time = time.time() - start_time
            logger.info(
                f"Request aborted: {request.method} {request.url.path} after {processing_time:.3f}s ({exc.__class__.__name__})",
                extra={"request_id": request_id, "processing_time": processing_time}
            )
            raise

        processing_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for performance monitoring"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))

        response = await call_next(request)

        processing_time = time.time() - start_time
        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold,
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response


class HealthCheckMiddleware(BaseHTTPMiddleware):
    """Skips the rest of the middleware stack's logging for health probes"""

    HEALTH_PATHS = ["/health", "/healthz", "/ping"]

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.HEALTH_PATHS:
            request.state.health_check = True
        return await call_next(request)
