from datetime import date, datetime
from decimal import Decimal

import pytest

from expense_tracker.schemas.expense import ExpenseRecord
from expense_tracker.services.friendship_service import build_friend_stats, round_money
from expense_tracker.utils.time_utils import month_key, months_ago

TODAY = date(2024, 8, 15)


def make_expense(amount: str, category: str = "Food", on: date = TODAY, expense_id: str = None) -> ExpenseRecord:
    created = datetime(on.year, on.month, on.day, 12, 0, 0)
    return ExpenseRecord(
        id=expense_id or f"{category}-{amount}-{on.isoformat()}",
        user_id="friend",
        category=category,
        amount=Decimal(amount),
        date=on,
        created_at=created,
        updated_at=created,
    )


class TestMonthHelpers:
    """월 계산 유틸리티 테스트"""

    @pytest.mark.parametrize("reference, months, expected", [
        (date(2024, 8, 15), 6, date(2024, 2, 15)),
        (date(2024, 8, 31), 6, date(2024, 2, 29)),
        (date(2023, 8, 31), 6, date(2023, 2, 28)),
        (date(2024, 3, 10), 6, date(2023, 9, 10)),
        (date(2024, 1, 1), 0, date(2024, 1, 1)),
    ])
    def test_months_ago(self, reference, months, expected):
        assert months_ago(reference, months) == expected

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"


class TestRounding:
    """금액 반올림 테스트"""

    def test_round_half_up(self):
        assert round_money(Decimal("30.005")) == Decimal("30.01")
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("1.004")) == Decimal("1.00")


class TestBuildFriendStats:
    """친구 지출 통계 집계 테스트"""

    def test_empty_expenses(self):
        stats = build_friend_stats([], today=TODAY, months=6)

        assert stats.total_expenses == 0
        assert stats.total_amount == Decimal("0")
        assert stats.average_amount == Decimal("0")
        assert stats.monthly_breakdown == []
        assert stats.category_breakdown == []

    @pytest.mark.parametrize("amounts", [["10.005", "20.00"], ["20.00", "10.005"]])
    def test_totals_are_order_independent(self, amounts):
        expenses = [make_expense(amount, expense_id=str(index)) for index, amount in enumerate(amounts)]

        stats = build_friend_stats(expenses, today=TODAY, months=6)

        assert stats.total_expenses == 2
        assert stats.total_amount == Decimal("30.01")
        assert stats.average_amount == Decimal("15.00")

    def test_average_is_rounded(self):
        expenses = [make_expense(amount, expense_id=amount) for amount in ("10.00", "10.00", "10.01")]

        stats = build_friend_stats(expenses, today=TODAY, months=6)

        assert stats.total_amount == Decimal("30.01")
        assert stats.average_amount == Decimal("10.00")

    def test_monthly_breakdown_window_and_order(self):
        expenses = [
            make_expense("10.00", on=date(2024, 8, 1)),
            make_expense("5.50", on=date(2024, 8, 10)),
            make_expense("7.25", on=date(2024, 6, 30)),
            make_expense("3.00", on=date(2024, 2, 15)),
            # 윈도우 시작일 이전
            make_expense("100.00", on=date(2024, 2, 14)),
            make_expense("200.00", on=date(2023, 12, 25)),
        ]

        stats = build_friend_stats(expenses, today=TODAY, months=6)

        assert [(bucket.month, bucket.count, bucket.total) for bucket in stats.monthly_breakdown] == [
            ("2024-08", 2, Decimal("15.50")),
            ("2024-06", 1, Decimal("7.25")),
            ("2024-02", 1, Decimal("3.00")),
        ]
        # 전체 합계와 카테고리는 윈도우와 무관
        assert stats.total_expenses == 6
        assert stats.total_amount == Decimal("325.75")

    def test_category_breakdown_sorted_by_total(self):
        expenses = [
            make_expense("12.00", category="Food"),
            make_expense("8.00", category="Food", on=date(2024, 7, 1)),
            make_expense("50.00", category="Travel"),
            make_expense("20.00", category="Books"),
            make_expense("5.00", category="Coffee"),
        ]

        stats = build_friend_stats(expenses, today=TODAY, months=6)

        assert [(bucket.category, bucket.count, bucket.total) for bucket in stats.category_breakdown] == [
            ("Travel", 1, Decimal("50.00")),
            ("Books", 1, Decimal("20.00")),
            ("Food", 2, Decimal("20.00")),
            ("Coffee", 1, Decimal("5.00")),
        ]

    def test_json_serialization_uses_camel_case_numbers(self):
        stats = build_friend_stats(
            [make_expense("10.005", expense_id="a"), make_expense("20.00", expense_id="b")],
            today=TODAY,
            months=6,
        )

        payload = stats.model_dump(mode="json", by_alias=True)

        assert payload["totalExpenses"] == 2
        assert payload["totalAmount"] == 30.01
        assert payload["averageAmount"] == 15.0
        assert payload["monthlyBreakdown"] == [{"month": "2024-08", "count": 2, "total": 30.01}]
        assert payload["categoryBreakdown"] == [{"category": "Food", "count": 2, "total": 30.01}]
