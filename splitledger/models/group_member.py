from sqlalchemy import Column, ForeignKey, Integer, DateTime, Boolean, UniqueConstraint, func
from sqlalchemy.sql import true
from splitledger.db.session import Base
from sqlalchemy.orm import relationship

class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member_user"),
    )

    id = Column(Integer, primary_key=True, index=True)

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # members who leave keep their row so old expenses still reference them
    is_active = Column(Boolean, nullable=False, server_default=true())
    left_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("Group", back_populates="members")
