from sqlalchemy import Column, Integer, Numeric, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from splitledger.db.session import Base

class SettlementHistory(Base):
    __tablename__ = "settlement_history"

    id = Column(Integer, primary_key=True)
    # NULL for payments made outside of any group
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True)
    from_user = Column(Integer, ForeignKey("users.id"), nullable=False)
    to_user = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, server_default="completed")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
