from typing import Optional, Dict, Any, List
from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


class ValidationError(BaseModel):
    """검증 에러 세부사항"""
    field: str
    message: str
    value: Optional[Any] = None


class ValidationErrorResponse(BaseModel):
    """검증 에러 응답 모델"""
    error: str = "validation_error"
    message: str
    validation_errors: List[ValidationError]
    status_code: int


# =============================================================================
# 커스텀 예외 클래스들
# =============================================================================

class BaseCustomException(HTTPException):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(status_code=status_code, detail=self.to_dict())

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }


class AuthenticationException(BaseCustomException):
    """인증 실패 예외"""
    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="authentication_error",
            message=message,
            details=details
        )


class AuthorizationException(BaseCustomException):
    """권한 부족 예외"""
    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None,
        error: str = "authorization_error"
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error=error,
            message=message,
            details=details
        )


class ResourceNotFoundException(BaseCustomException):
    """리소스를 찾을 수 없음 예외"""
    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="resource_not_found",
            message=message,
            details=details or {"resource": resource}
        )


class ConflictException(BaseCustomException):
    """리소스 충돌 예외"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="resource_conflict",
            message=message,
            details=details
        )


class BusinessLogicException(BaseCustomException):
    """비즈니스 로직 예외"""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error: str = "business_logic_error"
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error=error,
            message=message,
            details=details
        )


class RateLimitException(BaseCustomException):
    """요청 제한 초과 예외"""
    def __init__(
        self,
        message: str = "Too many requests, try again later",
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if retry_after:
            details = details or {}
            details["retry_after"] = retry_after

        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error="rate_limit_exceeded",
            message=message,
            details=details
        )


# =============================================================================
# 친구 관계 예외
# =============================================================================

class FriendshipNotFoundError(ResourceNotFoundException):
    """친구 요청이 없거나 호출자가 볼 수 없는 경우"""
    def __init__(self, friendship_id: Optional[str] = None):
        super().__init__(
            "Friendship",
            message="Friend request not found",
            details={"friendship_id": friendship_id} if friendship_id else None
        )


class InvalidOperationError(BusinessLogicException):
    """허용되지 않는 친구 관계 작업 (자기 자신 요청, 잘못된 action, 이미 처리된 요청)"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, error="invalid_operation")


class FriendshipConflictError(BusinessLogicException):
    """같은 사용자 쌍에 대한 친구 관계가 이미 존재함"""
    def __init__(self, message: str = "Friend request already exists"):
        super().__init__(message, error="friendship_conflict")


class NotFriendsError(AuthorizationException):
    """수락된 친구 관계 없이 통계 조회 시도"""
    def __init__(self, message: str = "Not friends with this user"):
        super().__init__(message, error="not_friends")


class StoreFailureError(BaseCustomException):
    """저장소 장애 (연결 끊김, 분류되지 않은 제약 조건 위반 등)"""
    def __init__(self, operation: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="store_failure",
            message=f"Failed to {operation}",
            details=None
        )


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        details=details
    )


def create_validation_error_response(
    message: str,
    validation_errors: List[ValidationError],
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY
) -> ValidationErrorResponse:
    """검증 에러 응답 생성"""
    return ValidationErrorResponse(
        message=message,
        validation_errors=validation_errors,
        status_code=status_code
    )


# =============================================================================
# 자주 사용되는 에러 팩토리 함수들
# =============================================================================

def user_not_found_error(user_id: Optional[str] = None):
    """사용자를 찾을 수 없음 에러"""
    details = {"user_id": user_id} if user_id else None
    return ResourceNotFoundException("User", details=details)


def expense_not_found_error(expense_id: Optional[str] = None):
    """지출 내역을 찾을 수 없음 에러"""
    details = {"expense_id": expense_id} if expense_id else None
    return ResourceNotFoundException("Expense", details=details)


def invalid_credentials_error():
    """잘못된 인증 정보 에러"""
    return AuthenticationException("Invalid credentials")


def invalid_token_error():
    """유효하지 않은 토큰 에러"""
    return AuthenticationException("Invalid or expired token")


def missing_token_error():
    """토큰 누락 에러"""
    return AuthenticationException("Access token required")


def email_already_exists_error():
    """이메일 중복 에러"""
    return ConflictException("Email already registered")


def username_already_exists_error():
    """사용자명 중복 에러"""
    return ConflictException("Username already taken")
