"""
Rate Limiting 미들웨어

Redis를 사용한 IP 기반 API Rate Limiting
"""

import time
from typing import Callable, Optional
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from expense_tracker.core.config import settings
from expense_tracker.core.errors import RateLimitException
from expense_tracker.core.logging import get_logger, log_security_event
from expense_tracker.database.redis import check_rate_limit
from expense_tracker.middleware.logging_middleware import get_client_ip

logger = get_logger(__name__)

AUTH_PATH_PREFIX = "/api/auth/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate Limiting 미들웨어

    /api 경로에만 적용하고, 인증 경로는 별도의 더 엄격한 한도를 씁니다.
    """

    def __init__(
        self,
        app,
        requests_per_minute: Optional[int] = None,
        auth_requests_per_minute: Optional[int] = None,
        enabled: Optional[bool] = None
    ):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute or settings.rate_limit_requests_per_minute
        self.auth_requests_per_minute = auth_requests_per_minute or settings.auth_rate_limit_requests_per_minute
        self.enabled = enabled if enabled is not None else settings.rate_limit_enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not self.enabled or not path.startswith("/api/"):
            return await call_next(request)

        client_ip = get_client_ip(request)
        if path.startswith(AUTH_PATH_PREFIX):
            identifier, limit = f"auth:{client_ip}", self.auth_requests_per_minute
        else:
            identifier, limit = f"api:{client_ip}", self.requests_per_minute

        allowed, current_count, reset_time = await check_rate_limit(
            identifier=identifier,
            limit=limit,
            window=60
        )

        if not allowed:
            log_security_event(
                logger,
                "rate_limit_exceeded",
                ip_address=client_ip,
                request_count=current_count,
                limit=limit,
                path=path,
                method=request.method
            )
            exc = RateLimitException(retry_after=reset_time)
            response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())
            response.headers["Retry-After"] = str(reset_time)
            self._add_rate_limit_headers(response, limit, current_count, reset_time)
            return response

        response = await call_next(request)
        self._add_rate_limit_headers(response, limit, current_count, reset_time)
        return response

    @staticmethod
    def _add_rate_limit_headers(response: Response, limit: int, current_count: int, reset_time: int):
        """Rate Limit 헤더 추가"""
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count))
        response.headers["X-RateLimit-Reset"] = str(int(time.time()) + reset_time)
