import uuid
from typing import Callable

IdGenerator = Callable[[], str]


def new_id() -> str:
    """불투명한 고유 ID (UUID4 문자열)"""
    return str(uuid.uuid4())
