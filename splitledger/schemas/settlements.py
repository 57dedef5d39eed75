from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from splitledger.schemas.events import SettlementStatus

class SettlementHistoryCreate(BaseModel):
    group_id: Optional[int] = None
    to_user: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    status: SettlementStatus = SettlementStatus.COMPLETED

class SettlementStatusUpdate(BaseModel):
    status: SettlementStatus

class SettlementHistoryOut(BaseModel):
    id: int
    group_id: Optional[int]
    from_user: int
    to_user: int
    amount: float
    status: SettlementStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
