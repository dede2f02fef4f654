"""
Registrar service middleware

This module provides middleware for X-Request-Id handling and request logging.
"""

import time
import logging
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to tag every request with an id and log it.

    This middleware:
    1. Takes X-Request-Id from the request headers, or generates one
    2. Stores it in request.state for use by route handlers
    3. Logs all requests with the id, status and latency
    4. Echoes the id in the response headers
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Incoming request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)

            latency_ms = (time.time() - start_time) * 1000

            logger.info(
                f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "latency_ms": round(latency_ms, 2),
                }
            )

            response.headers["X-Request-Id"] = request_id
            return response

        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000

            logger.error(
                f"Request failed: {request.method} {request.url.path} - Error: {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "latency_ms": round(latency_ms, 2),
                },
                exc_info=True
            )
            raise


def get_request_id(request: Request) -> str | None:
    """
    Helper function to get the request id from request state.

    Args:
        request: The FastAPI request object

    Returns:
        Request id if present, None otherwise
    """
    return getattr(request.state, "request_id", None)
