import traceback
from typing import Callable
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import DataError, IntegrityError, OperationalError, DatabaseError

from expense_tracker.core.config import settings
from expense_tracker.core.errors import (
    BaseCustomException,
    ValidationError,
    create_error_response,
    create_validation_error_response,
)
from expense_tracker.core.logging import get_logger

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    통합 에러 처리 미들웨어

    라우트에서 처리되지 않은 예외를 표준화된 에러 응답으로 변환합니다.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseCustomException as e:
            return JSONResponse(status_code=e.status_code, content=e.to_dict())

        except IntegrityError as e:
            # 데이터베이스 무결성 제약 조건 위반
            error_detail = str(e.orig) if getattr(e, "orig", None) else str(e)
            lowered = error_detail.lower()

            if "unique" in lowered or "duplicate" in lowered:
                if "email" in lowered:
                    message = "Email already registered"
                elif "username" in lowered:
                    message = "Username already taken"
                else:
                    message = "Duplicate entry detected"
                error_response = create_error_response(
                    "duplicate_entry",
                    message,
                    status.HTTP_409_CONFLICT,
                    {"constraint": "unique"}
                )
            else:
                error_response = create_error_response(
                    "database_constraint",
                    "Database constraint violation",
                    status.HTTP_400_BAD_REQUEST,
                    {"detail": error_detail} if settings.debug else None
                )

            logger.warning(f"Integrity error: {error_detail}")
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except DataError as e:
            # 컬럼 범위를 벗어난 값 (숫자 정밀도, 문자열 길이 등)
            error_response = create_error_response(
                "invalid_data",
                "Value out of range for the stored field",
                status.HTTP_400_BAD_REQUEST,
                {"detail": str(e.orig)} if settings.debug else None
            )
            logger.warning(f"Data error: {e.orig}")
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except (OperationalError, DatabaseError, ConnectionError) as e:
            error_response = create_error_response(
                "database_error",
                "Database not available",
                status.HTTP_503_SERVICE_UNAVAILABLE,
                {"detail": str(e)} if settings.debug else None
            )
            logger.error(f"Database error: {type(e).__name__}: {e}", exc_info=True)

            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except Exception as e:
            # 예상하지 못한 모든 에러들
            error_detail = None
            if settings.debug:
                error_detail = {
                    "exception": str(e),
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            error_response = create_error_response(
                "internal_server_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_detail
            )
            logger.error(f"Unhandled exception: {type(e).__name__}: {e}", exc_info=True)

            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )


async def custom_exception_handler(request: Request, exc: BaseCustomException):
    """커스텀 예외를 표준 에러 응답으로 변환"""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=getattr(exc, "headers", None)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTPException을 표준 형식으로 변환"""
    error_response = create_error_response(
        "http_error",
        exc.detail if isinstance(exc.detail, str) else "HTTP error occurred",
        exc.status_code,
        {"detail": exc.detail} if not isinstance(exc.detail, str) else None
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 본문/쿼리 검증 에러"""
    validation_errors = [
        ValidationError(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input")
        )
        for error in exc.errors()
    ]
    error_response = create_validation_error_response(
        "Request validation failed",
        validation_errors
    )
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.model_dump(mode="json")
    )


def register_exception_handlers(app: FastAPI):
    """
    FastAPI 예외 핸들러 등록

    그 밖의 예외는 ErrorHandlerMiddleware가 처리합니다.
    """
    app.add_exception_handler(BaseCustomException, custom_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
