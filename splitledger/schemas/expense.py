from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from splitledger.schemas.events import EqualSplit, ExactSplit, PercentageSplit, SplitRule

# matches the scale of expense_splits.value and expenses.amount
PERCENT_PLACES = 4
MONEY_PLACES = 2


def decimal_places(value: Decimal) -> int:
    exponent = value.normalize().as_tuple().exponent
    return -exponent if exponent < 0 else 0


class ExpenseCreate(BaseModel):
    title: str
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    paid_by: Optional[int] = None
    split_with: List[int]
    split: SplitRule = Field(default_factory=EqualSplit)

    @field_validator("split")
    @classmethod
    def check_split_precision(cls, split):
        if isinstance(split, PercentageSplit):
            values, places = split.percentages.values(), PERCENT_PLACES
        elif isinstance(split, ExactSplit):
            values, places = split.amounts.values(), MONEY_PLACES
        else:
            values, places = split.shares.values(), MONEY_PLACES

        if any(decimal_places(v) > places for v in values):
            raise ValueError(f"Split values allow at most {places} decimal places")

        return split

class ExpenseUpdate(ExpenseCreate):
    pass

class ExpenseSplitOut(BaseModel):
    user_id: int
    value: Optional[float] = None

    class Config:
        from_attributes = True

class ExpenseOut(BaseModel):
    id: int
    group_id: int
    title: str
    amount: float
    paid_by: int
    split_type: str
    created_at: Optional[datetime] = None
    splits: List[ExpenseSplitOut]

    class Config:
        from_attributes = True
