# User schemas
from .user import (
    UserCreate,
    UserLogin,
    UserProfile,
    UserResponse,
    Token,
)

# Friendship schemas
from .friendship import (
    FriendshipRecord,
    FriendshipCreate,
    FriendshipRespond,
    FriendEntry,
    FriendRequestEntry,
    MonthlyBucket,
    CategoryBucket,
    FriendStats,
)

# Expense schemas
from .expense import (
    Money,
    ExpenseRecord,
    ExpenseCreate,
    ExpenseUpdate,
)
