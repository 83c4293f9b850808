from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from .expense import Money
from .user import UserProfile

FriendshipStatus = Literal["pending", "accepted", "rejected"]


class FriendshipRecord(BaseModel):
    """저장소 경계에서 검증되는 친구 관계 레코드"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="친구 관계 ID")
    requester_id: str = Field(..., description="친구 요청한 사용자 ID")
    addressee_id: str = Field(..., description="친구 요청 받은 사용자 ID")
    status: FriendshipStatus = Field(..., description="친구 관계 상태: pending, accepted, rejected")
    created_at: datetime = Field(..., description="생성일시")
    updated_at: datetime = Field(..., description="수정일시")


class FriendshipCreate(BaseModel):
    """친구 요청 생성 스키마"""
    user_id: str = Field(..., min_length=1, description="친구 요청 대상 사용자 ID")


class FriendshipRespond(BaseModel):
    """친구 요청 응답 스키마

    action 값 검증은 서비스 계층에서 수행합니다 (잘못된 값은 400).
    """
    friendship_id: str = Field(..., min_length=1, description="친구 요청 ID")
    action: str = Field(..., description="accept 또는 reject")


class FriendEntry(BaseModel):
    """친구 목록 항목"""
    friendship_id: str
    status: FriendshipStatus
    friendship_created_at: datetime
    friend: UserProfile


class FriendRequestEntry(BaseModel):
    """대기 중인 친구 요청 항목 (user는 상대방)"""
    friendship_id: str
    status: FriendshipStatus
    created_at: datetime
    user: UserProfile


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MonthlyBucket(_CamelModel):
    month: str = Field(..., description="YYYY-MM")
    count: int
    total: Money


class CategoryBucket(_CamelModel):
    category: str
    count: int
    total: Money


class FriendStats(_CamelModel):
    """친구 지출 통계"""
    total_expenses: int
    total_amount: Money
    average_amount: Money
    monthly_breakdown: List[MonthlyBucket]
    category_breakdown: List[CategoryBucket]
