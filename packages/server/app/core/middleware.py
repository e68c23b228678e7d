"""
HTTP middleware and the JSON error envelope shared with the exception handlers.
"""

from __future__ import annotations

from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_HEADER = "X-CSRF-Token"


def error_response(code: str, message: str, status: int, errors: Optional[list[str]] = None) -> JSONResponse:
    """``{"error": {"code", "message", "status"}}`` with the specific message."""
    body: dict = {"code": code, "message": message, "status": status}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status, content={"error": body})


def build_security_headers(image_sources: Iterable[str] = ()) -> dict[str, str]:
    """Response headers; ``image_sources`` are extra origins allowed for <img>."""
    img_src = " ".join(["'self'", "data:", *image_sources])
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "0",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
        "Content-Security-Policy": (
            "default-src 'self'; "
            f"img-src {img_src}; "
            "frame-ancestors 'none';"
        ),
        "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
    }


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    def __init__(self, app, image_sources: Iterable[str] = ()):
        super().__init__(app)
        self.headers = build_security_headers(image_sources)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in self.headers.items():
            response.headers[header] = value
        return response


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection for cookie-authenticated writes.

    Bearer-token clients and requests without a session cookie are not
    subject to CSRF and pass through.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in SAFE_METHODS:
            return await call_next(request)
        if request.headers.get("Authorization"):
            return await call_next(request)
        if SESSION_COOKIE not in request.cookies:
            return await call_next(request)

        cookie_token = request.cookies.get(CSRF_COOKIE)
        header_token = request.headers.get(CSRF_HEADER)
        if not cookie_token or not header_token or cookie_token != header_token:
            return error_response(
                "CSRF_VALIDATION_FAILED", "Invalid or missing CSRF token.", 403
            )

        return await call_next(request)
