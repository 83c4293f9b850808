from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from expense_tracker.core.config import settings
from expense_tracker.core.errors import (
    FriendshipConflictError,
    FriendshipNotFoundError,
    InvalidOperationError,
    NotFriendsError,
    StoreFailureError,
    user_not_found_error,
)
from expense_tracker.core.logging import get_logger, log_friendship_event
from expense_tracker.models.friendships import Friendship, make_pair_key
from expense_tracker.models.users import User
from expense_tracker.schemas.expense import ExpenseRecord
from expense_tracker.schemas.friendship import (
    CategoryBucket,
    FriendEntry,
    FriendRequestEntry,
    FriendshipRecord,
    FriendStats,
    MonthlyBucket,
)
from expense_tracker.schemas.user import UserProfile
from expense_tracker.services.expense_service import ExpenseStore
from expense_tracker.services.user_service import UserStore
from expense_tracker.utils.ids import IdGenerator, new_id
from expense_tracker.utils.time_utils import month_key, months_ago, utcnow

logger = get_logger(__name__)

# action -> 결과 상태
RESPONSE_ACTIONS = {
    "accept": "accepted",
    "reject": "rejected",
}

TWO_PLACES = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """금액을 소수점 둘째 자리로 반올림 (half-up)"""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def build_friend_stats(
    expenses: Iterable[ExpenseRecord],
    today: date,
    months: int
) -> FriendStats:
    """
    지출 내역으로 친구 통계를 계산합니다.

    합계는 Decimal로 정확히 더한 뒤 마지막에 한 번만 반올림하므로 입력 순서와
    무관하게 같은 결과가 나옵니다.

    Args:
        expenses: 한 사용자의 지출 내역
        today: 월별 집계 윈도우의 기준일
        months: 월별 집계 윈도우 크기 (개월)

    Returns:
        FriendStats: 전체 합계/평균, 최근 months 개월 월별 집계, 카테고리별 집계
    """
    expenses = list(expenses)
    window_start = months_ago(today, months)

    total = Decimal("0")
    monthly: Dict[str, Tuple[int, Decimal]] = {}
    categories: Dict[str, Tuple[int, Decimal]] = {}

    for expense in expenses:
        total += expense.amount

        count, subtotal = categories.get(expense.category, (0, Decimal("0")))
        categories[expense.category] = (count + 1, subtotal + expense.amount)

        if expense.date >= window_start:
            key = month_key(expense.date)
            count, subtotal = monthly.get(key, (0, Decimal("0")))
            monthly[key] = (count + 1, subtotal + expense.amount)

    average = total / len(expenses) if expenses else Decimal("0")

    monthly_breakdown = [
        MonthlyBucket(month=month, count=count, total=round_money(subtotal))
        for month, (count, subtotal) in sorted(monthly.items(), reverse=True)
    ]
    category_breakdown = sorted(
        (
            CategoryBucket(category=category, count=count, total=round_money(subtotal))
            for category, (count, subtotal) in categories.items()
        ),
        key=lambda bucket: (-bucket.total, bucket.category)
    )

    return FriendStats(
        total_expenses=len(expenses),
        total_amount=round_money(total),
        average_amount=round_money(average),
        monthly_breakdown=monthly_breakdown,
        category_breakdown=category_breakdown,
    )


class FriendshipService:
    """
    친구 관계 관리 서비스

    pending -> accepted | rejected 상태 머신을 관리합니다. 상태는 모두 저장소에
    있고, 각 작업은 session_factory로 자체 세션과 트랜잭션을 열어 어떤 경로로
    끝나든 반납합니다.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        user_store: Optional[UserStore] = None,
        expense_store: Optional[ExpenseStore] = None,
        id_generator: IdGenerator = new_id,
        stats_months: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._session_factory = session_factory
        self._users = user_store or UserStore()
        self._expenses = expense_store or ExpenseStore()
        self._new_id = id_generator
        self._stats_months = stats_months if stats_months is not None else settings.friend_stats_months
        self._today = today or (lambda: utcnow().date())

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """작업 단위 트랜잭션. 저장소 오류는 StoreFailureError로 변환"""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Store failure during '{operation}': {e}", exc_info=True)
            raise StoreFailureError(operation) from e

    # =========================================================================
    # 상태 전이
    # =========================================================================

    async def send_request(self, requester_id: str, addressee_id: str) -> FriendshipRecord:
        """
        친구 요청을 전송합니다.

        Args:
            requester_id: 요청자 ID
            addressee_id: 대상자 ID

        Returns:
            FriendshipRecord: 생성된 pending 상태의 친구 요청

        Raises:
            ResourceNotFoundException: 요청자 또는 대상자가 없는 경우
            InvalidOperationError: 자기 자신에게 요청한 경우
            FriendshipConflictError: 두 사용자 사이에 이미 관계가 있는 경우 (상태 무관)
        """
        async with self._transaction("send friend request") as db:
            for user_id in (requester_id, addressee_id):
                if not await self._users.exists(db, user_id):
                    raise user_not_found_error(user_id)

            if requester_id == addressee_id:
                raise InvalidOperationError("Cannot send friend request to yourself")

            pair_key = make_pair_key(requester_id, addressee_id)
            existing = await db.execute(select(Friendship.id).where(Friendship.pair_key == pair_key))
            if existing.scalar_one_or_none() is not None:
                raise FriendshipConflictError()

            now = utcnow()
            friendship = Friendship(
                id=self._new_id(),
                requester_id=requester_id,
                addressee_id=addressee_id,
                pair_key=pair_key,
                status="pending",
                created_at=now,
                updated_at=now,
            )
            db.add(friendship)
            try:
                await db.flush()
            except IntegrityError as e:
                # concurrent request for the same pair won the unique pair_key
                raise FriendshipConflictError() from e

            record = FriendshipRecord.model_validate(friendship)

        log_friendship_event(
            logger, "request", record.id, requester_id, record.status,
            addressee_id=addressee_id
        )
        return record

    async def respond_to_request(
        self,
        friendship_id: str,
        responder_id: str,
        action: str
    ) -> FriendshipRecord:
        """
        친구 요청을 수락하거나 거절합니다.

        요청 받은 사용자(addressee)만 응답할 수 있고, 이미 처리된 요청에는
        다시 응답할 수 없습니다.

        Raises:
            InvalidOperationError: action이 accept/reject가 아니거나 요청이 pending이 아닌 경우
            FriendshipNotFoundError: 요청이 없거나 responder가 addressee가 아닌 경우
        """
        new_status = RESPONSE_ACTIONS.get(action)
        if new_status is None:
            raise InvalidOperationError("Invalid action", details={"action": action})

        async with self._transaction("respond to friend request") as db:
            result = await db.execute(
                select(Friendship)
                .where(
                    Friendship.id == friendship_id,
                    Friendship.addressee_id == responder_id
                )
                .with_for_update()
            )
            friendship = result.scalar_one_or_none()
            if friendship is None:
                raise FriendshipNotFoundError(friendship_id)

            if friendship.status != "pending":
                raise InvalidOperationError(
                    f"Friend request already {friendship.status}",
                    details={"friendship_id": friendship_id, "status": friendship.status}
                )

            friendship.status = new_status
            friendship.updated_at = utcnow()
            await db.flush()

            record = FriendshipRecord.model_validate(friendship)

        log_friendship_event(logger, action, friendship_id, responder_id, new_status)
        return record

    # =========================================================================
    # 조회
    # =========================================================================

    async def list_friends(self, user_id: str) -> List[FriendEntry]:
        """수락된 친구 목록 (상대방 프로필 포함, 최근 생성순)"""
        query = select(Friendship, User).join(
            User,
            or_(
                and_(Friendship.requester_id == user_id, User.id == Friendship.addressee_id),
                and_(Friendship.addressee_id == user_id, User.id == Friendship.requester_id)
            )
        ).where(
            Friendship.status == "accepted",
            or_(
                Friendship.requester_id == user_id,
                Friendship.addressee_id == user_id
            )
        ).order_by(Friendship.created_at.desc())

        async with self._transaction("fetch friends") as db:
            result = await db.execute(query)
            return [
                FriendEntry(
                    friendship_id=friendship.id,
                    status=friendship.status,
                    friendship_created_at=friendship.created_at,
                    friend=UserProfile.model_validate(friend),
                )
                for friendship, friend in result.all()
            ]

    async def list_pending_incoming(self, user_id: str) -> List[FriendRequestEntry]:
        """받은 친구 요청 중 대기 중인 것 (요청자 프로필 포함)"""
        return await self._list_pending(user_id, incoming=True)

    async def list_pending_outgoing(self, user_id: str) -> List[FriendRequestEntry]:
        """보낸 친구 요청 중 대기 중인 것 (대상자 프로필 포함)"""
        return await self._list_pending(user_id, incoming=False)

    async def _list_pending(self, user_id: str, incoming: bool) -> List[FriendRequestEntry]:
        if incoming:
            own_side, other_side = Friendship.addressee_id, Friendship.requester_id
        else:
            own_side, other_side = Friendship.requester_id, Friendship.addressee_id

        query = select(Friendship, User).join(
            User, User.id == other_side
        ).where(
            own_side == user_id,
            Friendship.status == "pending"
        ).order_by(Friendship.created_at.desc())

        async with self._transaction("fetch pending requests") as db:
            result = await db.execute(query)
            return [
                FriendRequestEntry(
                    friendship_id=friendship.id,
                    status=friendship.status,
                    created_at=friendship.created_at,
                    user=UserProfile.model_validate(other),
                )
                for friendship, other in result.all()
            ]

    async def search_users(self, term: str, exclude_user_id: str, limit: int) -> List[UserProfile]:
        """친구 요청 대상 검색 (UserStore에 위임)"""
        async with self._transaction("search users") as db:
            return await self._users.search(db, term, exclude_user_id, limit)

    async def find_friendship(self, user_id_1: str, user_id_2: str) -> Optional[FriendshipRecord]:
        """두 사용자 간의 친구 관계를 찾습니다 (방향 무관)"""
        async with self._transaction("find friendship") as db:
            friendship = await self._find_by_pair(db, user_id_1, user_id_2)
            return FriendshipRecord.model_validate(friendship) if friendship else None

    async def are_friends(self, user_id_1: str, user_id_2: str) -> bool:
        """두 사용자가 친구(accepted)인지 확인"""
        friendship = await self.find_friendship(user_id_1, user_id_2)
        return friendship is not None and friendship.status == "accepted"

    async def _find_by_pair(self, db: AsyncSession, user_id_1: str, user_id_2: str) -> Optional[Friendship]:
        result = await db.execute(
            select(Friendship).where(Friendship.pair_key == make_pair_key(user_id_1, user_id_2))
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # 통계
    # =========================================================================

    async def get_friend_stats(self, friend_id: str, current_user_id: str) -> FriendStats:
        """
        친구의 지출 통계를 조회합니다.

        수락된 친구 관계를 확인한 friend_id 그대로 지출 내역을 조회합니다.

        Raises:
            NotFriendsError: 두 사용자 사이에 accepted 관계가 없는 경우
        """
        async with self._transaction("fetch friend stats") as db:
            friendship = await self._find_by_pair(db, current_user_id, friend_id)
            if friendship is None or friendship.status != "accepted":
                raise NotFriendsError()

            expenses = await self._expenses.get_all_for_user(db, friend_id)

        return build_friend_stats(expenses, today=self._today(), months=self._stats_months)
