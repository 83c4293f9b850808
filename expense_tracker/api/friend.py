from typing import List
from fastapi import APIRouter, Depends, status

from expense_tracker.api.dependencies import get_current_user, get_friendship_service
from expense_tracker.schemas.friendship import (
    FriendshipCreate,
    FriendshipRecord,
    FriendshipRespond,
    FriendEntry,
    FriendRequestEntry,
    FriendStats,
)
from expense_tracker.schemas.user import UserResponse
from expense_tracker.services.friendship_service import FriendshipService

router = APIRouter(prefix="/api/friends", tags=["Friends"])


@router.post("/request", response_model=FriendshipRecord,
             status_code=status.HTTP_201_CREATED)
async def send_friend_request(
        friend_request: FriendshipCreate,
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    친구 요청을 전송합니다.

    Args:
        friend_request: 친구 요청 데이터 (user_id)
        current_user: 현재 인증된 사용자

    Returns:
        FriendshipRecord: 생성된 친구 요청 (status=pending)
    """
    return await service.send_request(current_user.id, friend_request.user_id)


@router.post("/respond", response_model=FriendshipRecord)
async def respond_to_friend_request(
        response: FriendshipRespond,
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    받은 친구 요청을 수락하거나 거절합니다.

    Args:
        response: friendship_id와 action (accept/reject)
        current_user: 요청 받은 사용자
    """
    return await service.respond_to_request(
        response.friendship_id, current_user.id, response.action
    )


@router.get("", response_model=List[FriendEntry])
async def get_friends_list(
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """현재 사용자의 친구 목록을 조회합니다."""
    return await service.list_friends(current_user.id)


@router.get("/pending", response_model=List[FriendRequestEntry])
async def get_pending_requests(
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """받은 친구 요청 중 대기 중인 목록"""
    return await service.list_pending_incoming(current_user.id)


@router.get("/sent", response_model=List[FriendRequestEntry])
async def get_sent_requests(
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """보낸 친구 요청 중 대기 중인 목록"""
    return await service.list_pending_outgoing(current_user.id)


@router.get("/{friend_id}/stats", response_model=FriendStats, response_model_by_alias=True)
async def get_friend_stats(
        friend_id: str,
        current_user: UserResponse = Depends(get_current_user),
        service: FriendshipService = Depends(get_friendship_service)
):
    """
    친구의 지출 통계를 조회합니다.

    수락된 친구 관계가 없으면 403을 반환합니다.
    """
    return await service.get_friend_stats(friend_id, current_user.id)
