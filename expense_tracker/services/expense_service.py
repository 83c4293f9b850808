from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from expense_tracker.models.expenses import Expense
from expense_tracker.schemas.expense import ExpenseRecord, ExpenseCreate, ExpenseUpdate
from expense_tracker.utils.time_utils import utcnow


class ExpenseStore:
    """지출 내역 저장소 (사용자 단위로만 접근)"""

    async def get_all_for_user(self, db: AsyncSession, user_id: str) -> List[ExpenseRecord]:
        """사용자의 모든 지출 내역 (최신 날짜순)"""
        query = (
            select(Expense)
            .where(Expense.user_id == user_id)
            .order_by(Expense.date.desc(), Expense.created_at.desc())
        )
        result = await db.execute(query)
        return [ExpenseRecord.model_validate(row) for row in result.scalars().all()]

    async def _get_owned(self, db: AsyncSession, expense_id: str, user_id: str) -> Optional[Expense]:
        result = await db.execute(
            select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, expense_id: str, user_id: str) -> Optional[ExpenseRecord]:
        expense = await self._get_owned(db, expense_id, user_id)
        return ExpenseRecord.model_validate(expense) if expense else None

    async def create(
        self,
        db: AsyncSession,
        expense_id: str,
        user_id: str,
        data: ExpenseCreate
    ) -> ExpenseRecord:
        now = utcnow()
        expense = Expense(
            id=expense_id,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **data.model_dump()
        )
        db.add(expense)
        await db.flush()
        await db.refresh(expense)
        return ExpenseRecord.model_validate(expense)

    async def update(
        self,
        db: AsyncSession,
        expense_id: str,
        user_id: str,
        data: ExpenseUpdate
    ) -> Optional[ExpenseRecord]:
        expense = await self._get_owned(db, expense_id, user_id)
        if expense is None:
            return None

        for field, value in data.model_dump().items():
            setattr(expense, field, value)
        expense.updated_at = utcnow()
        await db.flush()
        # 저장된 값 그대로 반환
        await db.refresh(expense)
        return ExpenseRecord.model_validate(expense)

    async def delete(self, db: AsyncSession, expense_id: str, user_id: str) -> bool:
        result = await db.execute(
            delete(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
        )
        return result.rowcount > 0
