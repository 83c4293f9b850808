"""
API Dependencies

FastAPI dependency functions for authentication and service wiring
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import async_sessionmaker

from expense_tracker.database.postgres import get_session_factory
from expense_tracker.schemas.user import UserResponse
from expense_tracker.services.friendship_service import FriendshipService
from expense_tracker.services.user_service import UserStore
from expense_tracker.utils.auth import decode_access_token
from expense_tracker.core.errors import (
    invalid_token_error,
    missing_token_error,
)
from expense_tracker.core.logging import set_request_user

# OAuth2 설정
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

user_store = UserStore()


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> UserResponse:
    """
    현재 인증된 사용자를 조회합니다.

    사용자 조회용 세션은 조회 직후 반납합니다.

    Raises:
        AuthenticationException: 토큰이 없거나 유효하지 않거나 사용자가 존재하지 않는 경우
    """
    if not token:
        raise missing_token_error()

    payload = decode_access_token(token)
    if not payload:
        raise invalid_token_error()

    user_id = payload.get("sub")
    if not user_id:
        raise invalid_token_error()

    async with session_factory() as db:
        user = await user_store.get_by_id(db, str(user_id))
    if not user:
        raise invalid_token_error()

    request.state.user = user
    set_request_user(user.id)
    return user


def get_friendship_service(
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> FriendshipService:
    """요청마다 저장소 핸들을 주입한 FriendshipService 생성"""
    return FriendshipService(session_factory, user_store=user_store)
