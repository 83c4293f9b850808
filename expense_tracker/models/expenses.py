from sqlalchemy import Column, String, DateTime, Date, Numeric, Text, ForeignKey
from expense_tracker.database.postgres import Base
from expense_tracker.utils.time_utils import utcnow


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String(255), primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    category = Column(String(100), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Expense(id={self.id}, user_id={self.user_id}, amount={self.amount})>"
