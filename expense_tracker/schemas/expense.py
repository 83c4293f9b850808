import datetime as dt
from decimal import Decimal
from typing import Annotated, Optional
from pydantic import BaseModel, Field, ConfigDict, PlainSerializer

# JSON 응답에서는 숫자로 직렬화
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

DEFAULT_CATEGORY = "General"


class ExpenseRecord(BaseModel):
    """저장소 경계에서 검증되는 지출 레코드"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: Optional[str] = None
    category: str
    amount: Money
    date: dt.date
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class ExpenseCreate(BaseModel):
    """지출 생성 스키마"""
    title: Optional[str] = Field(None, max_length=255, description="제목")
    category: str = Field(DEFAULT_CATEGORY, min_length=1, max_length=100, description="카테고리")
    # expenses.amount 컬럼 (Numeric(10, 2))과 같은 정밀도
    amount: Decimal = Field(..., max_digits=10, decimal_places=2, description="금액")
    date: dt.date = Field(..., description="지출일")
    description: Optional[str] = Field(None, description="메모")


class ExpenseUpdate(ExpenseCreate):
    """지출 수정 스키마 (전체 교체)"""
