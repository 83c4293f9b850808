import pytest
from fastapi import FastAPI, status
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import DataError

from expense_tracker.core.errors import BaseCustomException, NotFriendsError
from expense_tracker.middleware import rate_limiting
from expense_tracker.middleware.error_handler import (
    ErrorHandlerMiddleware,
    custom_exception_handler,
    register_exception_handlers,
)
from expense_tracker.middleware.rate_limiting import RateLimitMiddleware


def build_limited_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, requests_per_minute=2, auth_requests_per_minute=1, enabled=True)

    @app.get("/api/ping")
    async def ping():
        return {"pong": True}

    @app.get("/api/auth/ping")
    async def auth_ping():
        return {"pong": True}

    @app.get("/health/live")
    async def live():
        return {"status": "alive"}

    return app


@pytest.fixture
def fake_counter(monkeypatch):
    """Redis 대신 메모리 카운터 사용"""
    calls = []
    counts = {}

    async def fake_check_rate_limit(identifier: str, limit: int, window: int = 60):
        calls.append((identifier, limit))
        counts[identifier] = counts.get(identifier, 0) + 1
        return counts[identifier] <= limit, counts[identifier], window

    monkeypatch.setattr(rate_limiting, "check_rate_limit", fake_check_rate_limit)
    return calls


class TestCommonMiddleware:
    """공통 미들웨어 테스트"""

    @pytest.mark.asyncio
    async def test_security_and_request_id_headers(self, client: AsyncClient):
        response = await client.get("/health/live")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "alive"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_format(self, client: AsyncClient):
        response = await client.get("/api/unknown")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "http_error"


class TestRateLimitMiddleware:
    """Rate Limiting 미들웨어 테스트"""

    @pytest.mark.asyncio
    async def test_limit_exceeded(self, fake_counter):
        transport = ASGITransport(app=build_limited_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/api/ping")
            second = await client.get("/api/ping")
            third = await client.get("/api/ping")

        assert first.status_code == status.HTTP_200_OK
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.status_code == status.HTTP_200_OK
        assert third.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert third.headers["Retry-After"] == "60"
        assert third.json()["error"] == "rate_limit_exceeded"

    @pytest.mark.asyncio
    async def test_auth_paths_use_stricter_bucket(self, fake_counter):
        transport = ASGITransport(app=build_limited_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            first = await client.get("/api/auth/ping")
            second = await client.get("/api/auth/ping")
            api = await client.get("/api/ping")

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert api.status_code == status.HTTP_200_OK
        assert [identifier.split(":")[0] for identifier, _ in fake_counter] == ["auth", "auth", "api"]

    @pytest.mark.asyncio
    async def test_non_api_paths_are_not_limited(self, fake_counter):
        transport = ASGITransport(app=build_limited_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(5):
                response = await client.get("/health/live")
                assert response.status_code == status.HTTP_200_OK

        assert fake_counter == []


def build_failing_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    @app.get("/not-friends")
    async def not_friends():
        raise NotFriendsError()

    @app.get("/overflow")
    async def overflow():
        raise DataError("INSERT INTO expenses ...", {}, Exception("numeric field overflow"))

    @app.get("/broken")
    async def broken():
        raise RuntimeError("unexpected")

    return app


class TestErrorHandling:
    """예외 핸들러 / 에러 처리 미들웨어 테스트"""

    @pytest.mark.asyncio
    async def test_custom_exception_handler_registered(self):
        app = build_failing_app()
        assert app.exception_handlers[BaseCustomException] is custom_exception_handler

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/not-friends")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "error": "not_friends",
            "message": "Not friends with this user",
            "details": None,
            "status_code": 403,
        }

    @pytest.mark.asyncio
    async def test_data_error_is_client_error(self):
        transport = ASGITransport(app=build_failing_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/overflow")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "invalid_data"

    @pytest.mark.asyncio
    async def test_unhandled_exception_caught_by_middleware(self):
        transport = ASGITransport(app=build_failing_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/broken")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == "internal_server_error"
