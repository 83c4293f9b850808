from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator


class UserCreate(BaseModel):
    """사용자 생성 스키마"""
    username: str = Field(..., min_length=3, max_length=50, description="사용자명")
    email: EmailStr = Field(..., description="사용자 이메일")
    password: str = Field(..., min_length=6, max_length=128, description="비밀번호 (6자 이상)")
    display_name: Optional[str] = Field(None, max_length=100, description="표시명 (기본값: 사용자명)")

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        # 길이 검증은 공백 제거 후
        return value.strip() if isinstance(value, str) else value


class UserLogin(BaseModel):
    """사용자 로그인 스키마"""
    identifier: str = Field(..., min_length=1, description="사용자명 또는 이메일")
    password: str = Field(..., min_length=1, description="비밀번호")


class UserProfile(BaseModel):
    """사용자 프로필 스키마 (민감한 정보 제외)"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="사용자 ID")
    username: str = Field(..., description="사용자명")
    display_name: str = Field(..., description="표시명")
    avatar_url: Optional[str] = Field(None, description="아바타 URL")


class UserResponse(UserProfile):
    """본인 조회용 사용자 응답 스키마"""
    email: EmailStr = Field(..., description="이메일")
    created_at: datetime = Field(..., description="생성일시")
    last_login: Optional[datetime] = Field(None, description="마지막 로그인")


class Token(BaseModel):
    """토큰 스키마"""
    access_token: str = Field(..., description="액세스 토큰")
    token_type: str = Field(default="bearer", description="토큰 타입")
    expires_in: int = Field(..., description="액세스 토큰 만료 시간(초)")
    user: UserResponse = Field(..., description="로그인한 사용자")
