from decimal import Decimal
from typing import Dict, List
from pydantic import BaseModel, Field

class SettlementSuggestion(BaseModel):
    from_user: int
    to_user: int
    amount: Decimal

class Balance(BaseModel):
    paid: Dict[int, Decimal] = Field(default_factory=dict)
    owes: Dict[int, Decimal] = Field(default_factory=dict)
    balances: Dict[int, Decimal] = Field(default_factory=dict)
    settlements: List[SettlementSuggestion] = Field(default_factory=list)
    total_expenses: Decimal = Decimal("0")

class SettlementSuggestionOut(BaseModel):
    from_user: str
    to_user: str
    amount: float

class BalanceOut(BaseModel):
    paid: dict[str, float]
    owes: dict[str, float]
    balances: dict[str, float]
    settlements: list[SettlementSuggestionOut]
    total_expenses: float

    @classmethod
    def from_balance(cls, balance: Balance) -> "BalanceOut":
        def as_json_map(values: Dict[int, Decimal]) -> dict[str, float]:
            return {str(person): float(amount) for person, amount in values.items()}

        return cls(
            paid=as_json_map(balance.paid),
            owes=as_json_map(balance.owes),
            balances=as_json_map(balance.balances),
            settlements=[
                SettlementSuggestionOut(
                    from_user=str(s.from_user),
                    to_user=str(s.to_user),
                    amount=float(s.amount),
                )
                for s in balance.settlements
            ],
            total_expenses=float(balance.total_expenses),
        )

class GroupSettledOut(BaseModel):
    group_id: int
    settled: bool
