import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret-please-change"

# JSON and PDF responses only; nothing here is meant to be framed or to run scripts.
API_CSP = "default-src 'none'; frame-ancestors 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Harden every response; member and ledger data must never be cached by intermediaries."""

    def __init__(self, app, *, enable_hsts: bool = True, csp: Optional[str] = API_CSP) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.csp = csp

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        headers = response.headers

        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        if "authorization" in request.headers:
            headers.setdefault("Cache-Control", "no-store")
        if self.enable_hsts and request.url.scheme == "https":
            headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        if self.csp:
            headers.setdefault("Content-Security-Policy", self.csp)
        return response


def log_security_warnings(config: Settings) -> None:
    if config.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT secret is using the insecure default; set JWT_SECRET in the environment.")
    if "*" in config.cors_origins:
        logger.warning("CORS allows any origin while credentials are enabled.")
    if not config.assistant_api_key:
        logger.warning("Assistant API key is missing; the AI assistant will answer with an error message.")
