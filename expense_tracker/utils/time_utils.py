"""
시간 관련 유틸리티 함수
"""
import calendar
from datetime import date, datetime


def utcnow() -> datetime:
    """DB에 저장하는 naive UTC 시각"""
    return datetime.utcnow()


def months_ago(reference: date, months: int) -> date:
    """
    reference 기준 months 개월 전 날짜를 반환합니다.

    대상 월에 같은 일자가 없으면 그 달의 마지막 날로 맞춥니다.

    Examples:
        >>> months_ago(date(2024, 8, 31), 6)
        datetime.date(2024, 2, 29)
    """
    month_index = reference.year * 12 + (reference.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(reference.day, last_day))


def month_key(value: date) -> str:
    """날짜를 "YYYY-MM" 형식의 월 버킷 키로 변환"""
    return f"{value.year:04d}-{value.month:02d}"


