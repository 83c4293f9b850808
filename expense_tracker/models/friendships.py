from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from expense_tracker.database.postgres import Base
from expense_tracker.utils.time_utils import utcnow

FRIENDSHIP_STATUSES = ("pending", "accepted", "rejected")


def make_pair_key(user_id_1: str, user_id_2: str) -> str:
    """순서와 무관한 사용자 쌍 키 (정렬 후 결합)"""
    first, second = sorted((user_id_1, user_id_2))
    return f"{first}:{second}"


class Friendship(Base):
    __tablename__ = "friendships"
    __table_args__ = (
        CheckConstraint("requester_id <> addressee_id", name="ck_friendships_not_self"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_friendships_status"
        ),
    )

    id = Column(String(255), primary_key=True)
    requester_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    addressee_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # one record per unordered pair, whatever its status
    pair_key = Column(String(511), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Friendship(requester_id={self.requester_id}, addressee_id={self.addressee_id}, status={self.status})>"
