"""
User store.

Handles the database queries for user lookup, search and registration. Every
method takes the caller's session so lookups can join the caller's
transaction.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func, update

from expense_tracker.models.users import User
from expense_tracker.schemas.user import UserProfile, UserResponse
from expense_tracker.utils.search_utils import build_contains_pattern, LIKE_ESCAPE_CHAR
from expense_tracker.utils.time_utils import utcnow


class UserStore:
    """사용자 저장소"""

    async def get_model(self, db: AsyncSession, user_id: str) -> Optional[User]:
        """사용자 ID로 ORM 객체 조회"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_id(self, db: AsyncSession, user_id: str) -> Optional[UserResponse]:
        """사용자 ID로 조회"""
        user = await self.get_model(db, user_id)
        return UserResponse.model_validate(user) if user else None

    async def get_by_login_identifier(self, db: AsyncSession, identifier: str) -> Optional[User]:
        """사용자명 또는 이메일로 조회 (비밀번호 해시 포함)"""
        result = await db.execute(
            select(User).where(or_(User.username == identifier, User.email == identifier.lower()))
        )
        return result.scalars().first()

    async def exists(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def is_username_taken(self, db: AsyncSession, username: str) -> bool:
        result = await db.execute(select(User.id).where(User.username == username))
        return result.scalar_one_or_none() is not None

    async def is_email_taken(self, db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(User.id).where(User.email == email))
        return result.scalar_one_or_none() is not None

    async def search(
        self,
        db: AsyncSession,
        term: str,
        exclude_id: str,
        limit: int
    ) -> List[UserProfile]:
        """사용자명/표시명 대소문자 무시 부분 일치 검색 (본인 제외)"""
        pattern = build_contains_pattern(term)
        query = (
            select(User)
            .where(
                or_(
                    func.lower(User.username).like(pattern, escape=LIKE_ESCAPE_CHAR),
                    func.lower(User.display_name).like(pattern, escape=LIKE_ESCAPE_CHAR),
                ),
                User.id != exclude_id,
            )
            .order_by(User.username)
            .limit(limit)
        )
        result = await db.execute(query)
        return [UserProfile.model_validate(user) for user in result.scalars().all()]

    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        username: str,
        email: str,
        password_hash: str,
        display_name: Optional[str] = None
    ) -> UserResponse:
        """새 사용자 생성 (커밋은 호출자 책임)"""
        now = utcnow()
        user = User(
            id=user_id,
            username=username,
            email=email,
            password_hash=password_hash,
            display_name=display_name or username,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        await db.flush()
        return UserResponse.model_validate(user)

    async def update_last_login(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(update(User).where(User.id == user_id).values(last_login=utcnow()))
