from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from expense_tracker.api.dependencies import get_current_user
from expense_tracker.core.errors import expense_not_found_error
from expense_tracker.database.postgres import get_async_session
from expense_tracker.schemas.expense import ExpenseCreate, ExpenseRecord, ExpenseUpdate
from expense_tracker.schemas.user import UserResponse
from expense_tracker.services.expense_service import ExpenseStore
from expense_tracker.utils.ids import new_id

router = APIRouter(prefix="/api/expenses", tags=["Expenses"])

expense_store = ExpenseStore()


@router.get("", response_model=List[ExpenseRecord])
async def list_expenses(
        current_user: UserResponse = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_session)
):
    """내 지출 내역 (최신순)"""
    return await expense_store.get_all_for_user(db, current_user.id)


@router.post("", response_model=ExpenseRecord, status_code=status.HTTP_201_CREATED)
async def create_expense(
        expense_data: ExpenseCreate,
        current_user: UserResponse = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_session)
):
    expense = await expense_store.create(db, new_id(), current_user.id, expense_data)
    await db.commit()
    return expense


@router.put("/{expense_id}", response_model=ExpenseRecord)
async def update_expense(
        expense_id: str,
        expense_data: ExpenseUpdate,
        current_user: UserResponse = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_session)
):
    expense = await expense_store.update(db, expense_id, current_user.id, expense_data)
    if expense is None:
        raise expense_not_found_error(expense_id)
    await db.commit()
    return expense


@router.delete("/{expense_id}")
async def delete_expense(
        expense_id: str,
        current_user: UserResponse = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_session)
):
    if not await expense_store.delete(db, expense_id, current_user.id):
        raise expense_not_found_error(expense_id)
    await db.commit()
    return {"message": "Expense deleted successfully", "expense_id": expense_id}
