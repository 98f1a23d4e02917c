"""
API middleware and error mapping for MedReport Explainer.

Provides:
- Request logging
- Pipeline error to JSON response mapping
- Catch-all error handling
"""

import time
from typing import Callable

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.exceptions import PipelineError
from app.models.schemas import ErrorResponse
from app.utils.logger import bind_request_context, clear_request_context, get_logger

logger = get_logger("middleware")

REQUEST_ID_HEADER = "X-Request-ID"


def client_address(request: Request) -> str:
    """Best-effort client IP for logging."""
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Binds a request id, method and path into the log context for the
    lifetime of the request and echoes the id in ``X-Request-ID``.

    Logs:
    - Request arrival
    - Response status code
    - Processing time
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()

        request_id = bind_request_context(
            method=request.method,
            path=request.url.path
        )

        logger.info("Request received", client_ip=client_address(request))

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            logger.info(
                "Request completed",
                status_code=response.status_code,
                process_time_ms=int(process_time * 1000)
            )

            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            response.headers[REQUEST_ID_HEADER] = request_id

            return response

        except Exception as e:
            process_time = time.time() - start_time

            logger.error(
                "Request failed",
                error=str(e),
                process_time_ms=int(process_time * 1000)
            )
            raise

        finally:
            clear_request_context()


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches unhandled exceptions and returns safe error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "message": "An unexpected error occurred. Please try again.",
                    "error_code": "INTERNAL_ERROR"
                }
            )


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Turn a pipeline error into a generic, non-revealing JSON body."""
    log_fields = dict(
        path=request.url.path,
        stage=exc.stage,
        error_code=exc.error_code,
        cause=exc.message
    )
    if exc.status_code >= 500:
        logger.error("Pipeline failed", **log_fields)
    else:
        logger.warning("Request rejected", **log_fields)

    body = ErrorResponse(
        error=type(exc).__name__,
        message=exc.public_message,
        error_code=exc.error_code
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def setup_error_handlers(app: FastAPI) -> None:
    """Register pipeline error mapping on the application."""
    app.add_exception_handler(PipelineError, pipeline_error_handler)
