"""
Request-level middleware: request ids, access logging and body size limits.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .api_response import error_response
from .config import MAX_BODY_SIZE

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an id and log method, path, status and duration.

    A caller-supplied ``X-Request-ID`` is echoed back, otherwise one is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - Error: {e} [{request_id}]")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms [{request_id}]"
        )
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body exceeds ``max_body_size`` with 413"""

    def __init__(self, app, max_body_size: int = MAX_BODY_SIZE):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                return error_response(
                    "BAD_REQUEST", "Invalid Content-Length header", status_code=400, path=request.url.path
                )
            if size > self.max_body_size:
                logger.warning(
                    f"⚠️ Rejected {request.method} {request.url.path}: body of {size} bytes "
                    f"exceeds {self.max_body_size}"
                )
                return error_response(
                    "PAYLOAD_TOO_LARGE",
                    f"Request body exceeds {self.max_body_size / (1024 * 1024):g}MB limit",
                    status_code=413,
                    details={"size": size, "maxSize": self.max_body_size},
                    path=request.url.path,
                )

        return await call_next(request)
