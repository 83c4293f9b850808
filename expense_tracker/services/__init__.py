"""
Services layer for data access and domain rules.

This layer handles:
- Database queries and operations (user and expense stores)
- The friend-request state machine and friend stats
"""

from .user_service import UserStore
from .expense_service import ExpenseStore
from .friendship_service import FriendshipService, build_friend_stats

__all__ = [
    "UserStore",
    "ExpenseStore",
    "FriendshipService",
    "build_friend_stats",
]
