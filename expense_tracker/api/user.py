from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from expense_tracker.api.dependencies import get_current_user, get_friendship_service
from expense_tracker.core.config import settings
from expense_tracker.core.errors import BusinessLogicException
from expense_tracker.schemas.user import UserProfile, UserResponse
from expense_tracker.services.friendship_service import FriendshipService

router = APIRouter(prefix="/api/users", tags=["Users"])

MIN_SEARCH_LENGTH = 2


@router.get("/search", response_model=List[UserProfile])
async def search_users(
        q: str = Query("", max_length=50, description="검색어 (사용자명 또는 표시명, 2글자 이상)"),
        limit: Optional[int] = Query(None, ge=1, description="결과 개수"),
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    친구 추가를 위한 사용자 검색

    - 사용자명 또는 표시명 부분 일치 (대소문자 무시)
    - 본인 제외
    """
    term = q.strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise BusinessLogicException(
            f"Search query must be at least {MIN_SEARCH_LENGTH} characters"
        )

    limit = min(limit or settings.user_search_default_limit, settings.user_search_max_limit)
    return await service.search_users(term, current_user.id, limit)
