from .users import User
from .friendships import Friendship
from .expenses import Expense

__all__ = [
    "User",
    "Friendship",
    "Expense",
]
