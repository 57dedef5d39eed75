import logging
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from splitledger.core.dependencies import check_group_membership, fetch_active_member_ids
from splitledger.core.utils import to_decimal
from splitledger.models.expense import Expense
from splitledger.models.settlement_history import SettlementHistory
from splitledger.schemas.balances import Balance
from splitledger.schemas.events import (
    EqualSplit,
    ExactSplit,
    ExpenseEvent,
    PercentageSplit,
    SettlementEvent,
    SettlementStatus,
    SplitType,
)
from splitledger.schemas.settlements import SettlementHistoryCreate
from splitledger.services.balance_engine import (
    compute_global_balance,
    compute_group_balance,
    is_balance_settled,
)
from splitledger.services.group_services import list_group_for_user
from splitledger.services.user_queries import get_user_by_id

logger = logging.getLogger(__name__)


# -----------------------------------
# Row → event mapping
# -----------------------------------
def expense_to_event(expense: Expense) -> ExpenseEvent:
    values = {
        s.user_id: to_decimal(s.value)
        for s in expense.splits
        if s.value is not None
    }

    if expense.split_type == SplitType.PERCENTAGE.value:
        rule = PercentageSplit(percentages=values)
    elif expense.split_type == SplitType.EXACT.value:
        rule = ExactSplit(amounts=values)
    else:
        rule = EqualSplit(shares=values)

    return ExpenseEvent(
        amount=to_decimal(expense.amount),
        paid_by=expense.paid_by,
        split_with=[s.user_id for s in expense.splits],
        split=rule,
    )


def settlement_to_event(settlement: SettlementHistory) -> SettlementEvent:
    return SettlementEvent(
        amount=to_decimal(settlement.amount),
        from_user=settlement.from_user,
        to_user=settlement.to_user,
        status=settlement.status,
    )


# -----------------------------------
# Balances
# -----------------------------------
async def load_group_balance(db: AsyncSession, group_id: int) -> Balance:
    members = await fetch_active_member_ids(db, group_id)

    q_exp = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .order_by(Expense.id)
    )
    expenses = (await db.scalars(q_exp)).all()

    q_set = (
        select(SettlementHistory)
        .where(
            SettlementHistory.group_id == group_id,
            SettlementHistory.status == SettlementStatus.COMPLETED.value,
        )
        .order_by(SettlementHistory.id)
    )
    settlements = (await db.scalars(q_set)).all()

    logger.debug(
        "Computing balance for group %s: %s members, %s expenses, %s settlements",
        group_id, len(members), len(expenses), len(settlements),
    )

    return compute_group_balance(
        members,
        [expense_to_event(e) for e in expenses],
        [settlement_to_event(s) for s in settlements],
    )


async def compute_group_settlements(db: AsyncSession, group_id: int, user_id: int) -> Balance:
    await check_group_membership(db, group_id, user_id)
    return await load_group_balance(db, group_id)


async def compute_user_global_balance(db: AsyncSession, user_id: int) -> Balance:
    groups = await list_group_for_user(db, user_id)

    per_group = [await load_group_balance(db, g.id) for g in groups]

    q_global = (
        select(SettlementHistory)
        .where(
            SettlementHistory.group_id.is_(None),
            SettlementHistory.status == SettlementStatus.COMPLETED.value,
        )
        .order_by(SettlementHistory.id)
    )
    global_settlements = (await db.scalars(q_global)).all()

    return compute_global_balance(
        user_id,
        per_group,
        [settlement_to_event(s) for s in global_settlements],
    )


async def is_group_settled(db: AsyncSession, group_id: int, user_id: int) -> bool:
    balance = await compute_group_settlements(db, group_id, user_id)
    return is_balance_settled(balance)


# -----------------------------------
# Settlement history
# -----------------------------------
async def add_settlement(db: AsyncSession, user_id: int, data: SettlementHistoryCreate):
    if data.to_user == user_id:
        raise HTTPException(400, "You can't settle with yourself")

    if data.group_id is not None:
        # both sides must be part of the group
        await check_group_membership(db, data.group_id, user_id)

        members = await fetch_active_member_ids(db, data.group_id)
        if data.to_user not in members:
            raise HTTPException(400, "Receiver is not in this group")

    elif not await get_user_by_id(db, data.to_user):
        raise HTTPException(404, "Receiver does not exist")

    settlement = SettlementHistory(
        group_id=data.group_id,
        from_user=user_id,
        to_user=data.to_user,
        amount=data.amount,
        status=data.status.value,
    )

    db.add(settlement)
    await db.commit()
    await db.refresh(settlement)

    return settlement


async def get_settlement(db: AsyncSession, settlement_id: int):
    q = select(SettlementHistory).where(SettlementHistory.id == settlement_id)
    result = await db.execute(q)
    settlement = result.scalar_one_or_none()

    if not settlement:
        raise HTTPException(404, "Settlement entry not found")

    return settlement


async def update_settlement_status(
    db: AsyncSession,
    settlement_id: int,
    user_id: int,
    status: SettlementStatus,
):
    settlement = await get_settlement(db, settlement_id)

    if user_id not in (settlement.from_user, settlement.to_user):
        raise HTTPException(403, "You are not part of this settlement")

    if settlement.status != SettlementStatus.PENDING.value:
        raise HTTPException(400, f"Settlement is already {settlement.status}")

    if status == SettlementStatus.PENDING:
        raise HTTPException(400, "Settlement is already pending")

    settlement.status = status.value
    await db.commit()
    await db.refresh(settlement)

    return settlement


async def get_settlement_history(db: AsyncSession, group_id: int, user_id: int):
    await check_group_membership(db, group_id, user_id)

    q2 = select(SettlementHistory).where(
        SettlementHistory.group_id == group_id
    ).order_by(SettlementHistory.created_at.desc(), SettlementHistory.id.desc())

    result = await db.execute(q2)
    return result.scalars().all()


async def undo_settlement(db: AsyncSession, settlement_id: int, user_id: int):
    settlement = await get_settlement(db, settlement_id)

    # only the user who made the payment can undo it
    if settlement.from_user != user_id:
        raise HTTPException(403, "You are not allowed to undo this settlement")

    await db.delete(settlement)
    await db.commit()

    return { "status": "undo successful" }
