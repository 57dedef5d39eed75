from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from splitledger.db.session import Base

class ExpenseSplit(Base):
    """
    One participant of an expense.

    `value` is interpreted by the expense's split type: a percentage for
    percentage splits, an amount for exact splits, and an optional
    pre-computed share for equal splits.
    """
    __tablename__ = "expense_splits"

    id = Column(Integer, primary_key=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    value = Column(Numeric(12, 4), nullable=True)

    expense = relationship("Expense", back_populates="splits")
