"""
보안 미들웨어

클릭재킹, MIME 스니핑 등을 막는 보안 헤더를 설정합니다.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from expense_tracker.core.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """보안 헤더 설정 미들웨어"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # HSTS (HTTPS 강제)
        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
