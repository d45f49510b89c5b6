"""Request correlation and access logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .correlation import start_request
from .logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Start request correlation, echo X-Request-ID and log one access line.

    The access line is written after the handler ran, so it carries the
    organization and mailroom the request was resolved to.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation = start_request(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request crashed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )

        response.headers[REQUEST_ID_HEADER] = correlation.request_id
        return response
