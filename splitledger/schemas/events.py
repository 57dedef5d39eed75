"""
Event records consumed by the balance engine.

The split rule is a tagged union keyed by ``type`` so that raw split details
are validated once, at deserialization, and the engine only ever sees typed
values.
"""
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SplitType(str, Enum):
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    EXACT = "exact"


class SettlementStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"


class EqualSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["equal"] = "equal"
    # optional pre-computed shares, used verbatim when every participant has one
    shares: Dict[int, Decimal] = Field(default_factory=dict)


class PercentageSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["percentage"] = "percentage"
    percentages: Dict[int, Decimal] = Field(default_factory=dict)


class ExactSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["exact"] = "exact"
    amounts: Dict[int, Decimal] = Field(default_factory=dict)


SplitRule = Annotated[
    Union[EqualSplit, PercentageSplit, ExactSplit],
    Field(discriminator="type"),
]


class ExpenseEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(gt=0)
    paid_by: int
    split_with: List[int]
    split: SplitRule = Field(default_factory=EqualSplit)


class SettlementEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    from_user: int
    to_user: int
    status: SettlementStatus = SettlementStatus.COMPLETED
