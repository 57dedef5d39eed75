"""
Balance and settlement-plan engine.

Pure, synchronous functions: every call folds the events it is given into a
fresh ``Balance`` and keeps no state between calls. Loading events from the
database happens in the service layer before any of this runs.

    paid[p]     = what p spent on expenses + settlements p sent
    owes[p]     = p's shares of expenses + settlements p received
    balances[p] = paid[p] - owes[p]   (positive: p is owed money)
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from splitledger.core.errors import InvalidArgument
from splitledger.core.utils import ZERO, TOLERANCE, is_settled, qfloor, qround
from splitledger.schemas.balances import Balance, SettlementSuggestion
from splitledger.schemas.events import (
    ExactSplit,
    ExpenseEvent,
    PercentageSplit,
    SettlementEvent,
    SettlementStatus,
    SplitRule,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
# percentages this close to 100 are treated as a complete split
PERCENT_EPSILON = Decimal("0.000001")


# -----------------------------------
# Fallback policies
# -----------------------------------
def resolve_fallback_payer(members: Sequence[int]) -> int:
    """Member that absorbs money attributed to someone no longer in the group."""
    return members[0]


def resolve_default_share(rule: SplitRule, participant_count: int) -> Decimal:
    """Split value used for a participant the rule carries no entry for."""
    if isinstance(rule, PercentageSplit) and participant_count:
        return HUNDRED / participant_count
    return ZERO


# -----------------------------------
# Split resolver
# -----------------------------------
def _absorb_remainder(amount: Decimal, participants: List[int], raw: Dict[int, Decimal], quantize=qfloor) -> Dict[int, Decimal]:
    # first N-1 shares are quantized to the cent, the last one takes what is left
    shares = {p: quantize(raw[p]) for p in participants[:-1]}
    shares[participants[-1]] = amount - sum(shares.values(), ZERO)
    return shares


def split_equally(amount: Decimal, participants: List[int]) -> Dict[int, Decimal]:
    if not participants:
        return {}
    per_person = amount / len(participants)
    return _absorb_remainder(amount, participants, {p: per_person for p in participants})


def resolve_shares(amount: Decimal, split_with: Iterable[int], rule: SplitRule) -> Dict[int, Decimal]:
    """
    Owed share of every participant of one expense.

    Never raises for incomplete split details: missing entries fall back to
    ``resolve_default_share``. An empty participant list yields no shares.
    """
    participants = list(dict.fromkeys(split_with))
    if not participants:
        return {}

    default = resolve_default_share(rule, len(participants))

    if isinstance(rule, PercentageSplit):
        pcts = {p: rule.percentages.get(p, default) for p in participants}
        raw = {p: amount * pct / HUNDRED for p, pct in pcts.items()}
        if abs(sum(pcts.values(), ZERO) - HUNDRED) <= PERCENT_EPSILON:
            return _absorb_remainder(amount, participants, raw, quantize=qround)
        return raw

    if isinstance(rule, ExactSplit):
        return {p: rule.amounts.get(p, default) for p in participants}

    # equal: client pre-computed shares win only when they cover everybody
    if rule.shares and all(p in rule.shares for p in participants):
        return {p: rule.shares[p] for p in participants}
    return split_equally(amount, participants)


def resolve_remaining_shares(
    amount: Decimal,
    participants: List[int],
    current: List[int],
    rule: SplitRule,
) -> Dict[int, Decimal]:
    """
    Shares among the participants still in the group once others have left.

    The whole amount is spread over the remaining participants in proportion
    to their original percentage or exact amount, so nothing is lost with the
    people who left. Equal splits, and rules that leave the remaining people
    with nothing, fall back to an equal split.
    """
    if isinstance(rule, PercentageSplit):
        default = resolve_default_share(rule, len(participants))
        weights = {p: rule.percentages.get(p, default) for p in current}
    elif isinstance(rule, ExactSplit):
        weights = {p: rule.amounts.get(p, ZERO) for p in current}
    else:
        weights = {}

    total = sum(weights.values(), ZERO)
    if total <= 0:
        return split_equally(amount, current)

    raw = {p: amount * w / total for p, w in weights.items()}
    return _absorb_remainder(amount, current, raw, quantize=qround)


# -----------------------------------
# Aggregator
# -----------------------------------
def _attribute(person: int, members: List[int], member_set: set, event: str) -> int:
    if person in member_set:
        return person

    fallback = resolve_fallback_payer(members)
    logger.warning(
        "Data consistency: %s references user %s who is not a current member, "
        "attributing to user %s",
        event, person, fallback,
    )
    return fallback


def aggregate(
    members: Optional[Sequence[int]],
    expenses: Iterable[ExpenseEvent],
    settlements: Iterable[SettlementEvent],
) -> Tuple[Dict[int, Decimal], Dict[int, Decimal], Decimal]:
    """
    Fold expenses and settlements into per-person ``paid`` / ``owes`` totals.

    Returns ``(paid, owes, total_expenses)``. Every member appears in both
    mappings, even without any activity.
    """
    if members is None:
        raise InvalidArgument("A participant list is required to compute balances")

    members = list(dict.fromkeys(members))
    member_set = set(members)

    paid: Dict[int, Decimal] = {m: ZERO for m in members}
    owes: Dict[int, Decimal] = {m: ZERO for m in members}
    total_expenses = ZERO

    if not members:
        return paid, owes, total_expenses

    for expense in expenses:
        total_expenses += expense.amount

        participants = list(dict.fromkeys(expense.split_with))
        current = [p for p in participants if p in member_set]
        rule = expense.split

        if len(current) != len(participants):
            logger.warning(
                "Data consistency: expense paid by user %s splits with former members %s, "
                "recomputing shares among %s",
                expense.paid_by,
                [p for p in participants if p not in member_set],
                current,
            )

        if not current:
            logger.warning(
                "Data consistency: expense of %s paid by user %s has no current participants, skipping",
                expense.amount, expense.paid_by,
            )
            continue

        payer = _attribute(expense.paid_by, members, member_set, "expense")
        paid[payer] += expense.amount

        if len(current) == len(participants):
            shares = resolve_shares(expense.amount, current, rule)
        else:
            shares = resolve_remaining_shares(expense.amount, participants, current, rule)

        for person, share in shares.items():
            owes[person] += share

    for settlement in settlements:
        if settlement.status != SettlementStatus.COMPLETED:
            continue

        sender = _attribute(settlement.from_user, members, member_set, "settlement")
        recipient = _attribute(settlement.to_user, members, member_set, "settlement")

        paid[sender] += settlement.amount
        owes[recipient] += settlement.amount

    return paid, owes, total_expenses


def net_balances(paid: Dict[int, Decimal], owes: Dict[int, Decimal]) -> Dict[int, Decimal]:
    people = list(dict.fromkeys([*paid.keys(), *owes.keys()]))
    return {
        p: qround(paid.get(p, ZERO) - owes.get(p, ZERO))
        for p in people
    }


# -----------------------------------
# Settlement planner
# -----------------------------------
def plan_settlements(balances: Dict[int, Decimal]) -> List[SettlementSuggestion]:
    """
    Greedy debtor/creditor sweep.

    Largest debtor pays the largest creditors first. Not a minimum-count
    solver, but every debt closes and equal amounts keep their input order.
    """
    debtors = [[p, -bal] for p, bal in balances.items() if bal < -TOLERANCE]
    creditors = [[p, bal] for p, bal in balances.items() if bal > TOLERANCE]

    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    suggestions: List[SettlementSuggestion] = []

    for debtor_id, remaining in debtors:
        for creditor in creditors:
            if remaining <= TOLERANCE:
                break
            if creditor[1] <= TOLERANCE:
                continue

            amount = min(remaining, creditor[1])
            suggestions.append(SettlementSuggestion(
                from_user=debtor_id,
                to_user=creditor[0],
                amount=qround(amount),
            ))

            remaining -= amount
            creditor[1] -= amount

    return suggestions


def _build_balance(paid, owes, total_expenses) -> Balance:
    balances = net_balances(paid, owes)
    return Balance(
        paid={p: qround(v) for p, v in paid.items()},
        owes={p: qround(v) for p, v in owes.items()},
        balances=balances,
        settlements=plan_settlements(balances),
        total_expenses=qround(total_expenses),
    )


# -----------------------------------
# Entry points
# -----------------------------------
def compute_group_balance(
    members: Optional[Sequence[int]],
    expenses: Iterable[ExpenseEvent],
    settlements: Iterable[SettlementEvent],
) -> Balance:
    paid, owes, total_expenses = aggregate(members, expenses, settlements)
    return _build_balance(paid, owes, total_expenses)


def compute_global_balance(
    user_id: int,
    per_group_balances: Optional[Iterable[Balance]],
    global_settlements: Iterable[SettlementEvent] = (),
) -> Balance:
    """
    Merge per-group results into one view and plan settlements once on the
    merged balances, so a pair of people who owe each other in different
    groups nets to a single payment.

    Completed settlements made outside any group count when they involve
    ``user_id`` or two people already present in the merged view.
    """
    if per_group_balances is None:
        raise InvalidArgument("Per-group balances are required for a global balance")

    paid: Dict[int, Decimal] = {}
    owes: Dict[int, Decimal] = {}
    total_expenses = ZERO

    for group_balance in per_group_balances:
        for person in [*group_balance.paid.keys(), *group_balance.owes.keys()]:
            paid.setdefault(person, ZERO)
            owes.setdefault(person, ZERO)

        for person, amount in group_balance.paid.items():
            paid[person] += amount
        for person, amount in group_balance.owes.items():
            owes[person] += amount

        total_expenses += group_balance.total_expenses

    known = set(paid)

    for settlement in global_settlements:
        if settlement.status != SettlementStatus.COMPLETED:
            continue

        involves_user = user_id in (settlement.from_user, settlement.to_user)
        between_known = settlement.from_user in known and settlement.to_user in known
        if not (involves_user or between_known):
            continue

        for person in (settlement.from_user, settlement.to_user):
            paid.setdefault(person, ZERO)
            owes.setdefault(person, ZERO)

        paid[settlement.from_user] += settlement.amount
        owes[settlement.to_user] += settlement.amount

    return _build_balance(paid, owes, total_expenses)


def is_balance_settled(balance: Balance, tolerance: Decimal = TOLERANCE) -> bool:
    return all(is_settled(amount, tolerance) for amount in balance.balances.values())
