"""
Response hardening for the CRM API.

Every JSON and PDF response leaves with a deny-all CSP, no framing, no MIME
sniffing, a strict referrer policy, disabled browser features and the API
version. HSTS is only sent in production, where TLS terminates in front of us.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import API_VERSION, IS_PRODUCTION

logger = logging.getLogger(__name__)


def get_csp_policy() -> str:
    """
    Content-Security-Policy for an API that only serves JSON and PDFs.

    Nothing is loaded or framed from anywhere.
    """
    directives = [
        "default-src 'none'",
        "frame-ancestors 'none'",
        "base-uri 'none'",
        "form-action 'none'",
    ]
    return "; ".join(directives)


def get_permissions_policy() -> str:
    """Disable browser features an API never needs"""
    features = [
        "accelerometer=()",
        "camera=()",
        "geolocation=()",
        "gyroscope=()",
        "magnetometer=()",
        "microphone=()",
        "payment=()",
        "usb=()",
    ]
    return ", ".join(features)


def get_security_headers_dict() -> dict:
    headers = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": get_csp_policy(),
        "Permissions-Policy": get_permissions_policy(),
        "X-Permitted-Cross-Domain-Policies": "none",
        "X-API-Version": API_VERSION,
    }

    if IS_PRODUCTION:
        # max-age=31536000 = 1 year
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"

    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    Paths in ``exclude_paths`` (e.g. the interactive docs, which need scripts)
    are left untouched.
    """

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []
        logger.info(f"🛡️ Security headers enabled (HSTS {'on' if IS_PRODUCTION else 'off'})")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        for name, value in get_security_headers_dict().items():
            response.headers[name] = value

        # Authenticated data must not be cached; PDFs may set their own policy
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

        return response
