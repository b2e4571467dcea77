"""API middleware for logging, rate limiting, and error handling."""
import inspect
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.exceptions import BaseAPIException, RateLimitExceeded, ValidationError
from ..core.logging import RequestLogger, SecurityLogger
from ..core.security import security_headers
from ..core.validation import format_errors
from ..schemas.common import ErrorResponse

logger = structlog.get_logger(__name__)


def error_body(exc: BaseAPIException) -> dict:
    return ErrorResponse(
        error=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    ).model_dump(mode="json")


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Render application exceptions as JSON error responses."""
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every schema violation in the same body as other errors."""
    error = ValidationError(details={"errors": format_errors(exc.errors())})
    return await api_exception_handler(request, error)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        RequestLogger.log_request(
            method=request.method,
            path=str(request.url.path),
            request_id=request_id,
            extra_data={
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent")
            }
        )

        response = await call_next(request)

        response_time_ms = (time.time() - start_time) * 1000
        RequestLogger.log_response(
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            response_time_ms=response_time_ms,
            request_id=request_id
        )

        response.headers["X-Request-ID"] = request_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into 500 responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseAPIException as e:
            return JSONResponse(status_code=e.status_code, content=error_body(e))

        except Exception as e:
            logger.exception("Unhandled error", path=request.url.path)
            debug = request.app.state.settings.debug
            body = ErrorResponse(
                error="Internal server error",
                error_code="INTERNAL_ERROR",
                details={"message": str(e)} if debug else {},
            )
            return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Fixed-window rate limiting for sensitive endpoints, keyed by client IP."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = request.app.state.settings.rate_limit
        limiter = getattr(request.app.state, "rate_limiter", None)
        if (
            not settings.enabled
            or limiter is None
            or request.url.path not in settings.protected_paths
        ):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        result = limiter.hit(f"{client_ip}:{request.url.path}")
        if inspect.isawaitable(result):
            result = await result

        headers = {
            "X-RateLimit-Limit": str(limiter.max_requests),
            "X-RateLimit-Remaining": str(result.remaining),
        }

        if not result.allowed:
            SecurityLogger.log_rate_limit_exceeded(
                identifier=client_ip,
                path=str(request.url.path)
            )
            retry_after = max(int(result.reset_at - time.time()) + 1, 1)
            headers["Retry-After"] = str(retry_after)
            exc = RateLimitExceeded(details={"retry_after": retry_after})
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc),
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(security_headers())
        return response
