from decimal import Decimal
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from splitledger.core.dependencies import check_group_membership, fetch_active_member_ids
from splitledger.core.utils import CENTS
from splitledger.models.expense import Expense
from splitledger.models.expense_split import ExpenseSplit
from splitledger.schemas.events import ExactSplit, PercentageSplit
from splitledger.schemas.expense import ExpenseCreate, ExpenseUpdate

HUNDRED = Decimal("100")


def split_values(data: ExpenseCreate) -> dict[int, Decimal]:
    if isinstance(data.split, PercentageSplit):
        return dict(data.split.percentages)
    if isinstance(data.split, ExactSplit):
        return dict(data.split.amounts)
    return dict(data.split.shares)


def validate_split(data: ExpenseCreate):
    participants = set(data.split_with)
    values = split_values(data)

    if set(values) - participants:
        raise HTTPException(400, "Split details reference users outside the split")

    if isinstance(data.split, PercentageSplit):
        if set(values) != participants:
            raise HTTPException(400, "Every participant needs a percentage")
        total = sum(values.values(), Decimal("0"))
        if total != HUNDRED:
            raise HTTPException(400, f"Percentages ({total}) must add up to 100")

    elif isinstance(data.split, ExactSplit):
        if set(values) != participants:
            raise HTTPException(400, "Every participant needs an amount")
        total = sum(values.values(), Decimal("0"))
        if total != data.amount:
            raise HTTPException(
                400,
                f"Split total ({total}) must equal expense amount ({data.amount})"
            )

    elif values:
        # pre-computed equal shares are optional but must be complete
        total = sum(values.values(), Decimal("0"))
        if set(values) != participants or total != data.amount:
            raise HTTPException(400, "Equal shares must cover every participant and add up to the amount")

        per_person = data.amount / len(participants)
        if any(abs(v - per_person) > CENTS for v in values.values()):
            raise HTTPException(400, "Equal shares can only differ from an even split by one cent")

    if any(v < 0 for v in values.values()):
        raise HTTPException(400, "Split values can't be negative")


async def validate_expense(db: AsyncSession, data: ExpenseCreate, group_id: int, paid_by: int):
    member_ids = set(await fetch_active_member_ids(db, group_id))

    if paid_by not in member_ids:
        raise HTTPException(400, "Payer is not a member of the group")

    # -----------------------------------
    # Validate split users
    # -----------------------------------
    if not data.split_with:
        raise HTTPException(400, "An expense needs at least one participant")

    if len(data.split_with) != len(set(data.split_with)):
        raise HTTPException(400, "Duplicate users found in splits")

    if not set(data.split_with) <= member_ids:
        raise HTTPException(
            400,
            "One or more users in splits are not members of the group"
        )

    validate_split(data)


async def create_expense(db: AsyncSession, data: ExpenseCreate, user_id: int, group_id: int):
    await check_group_membership(db, group_id, user_id)

    paid_by = data.paid_by if data.paid_by is not None else user_id
    await validate_expense(db, data, group_id, paid_by)

    # -----------------------------------
    # Create expense + splits
    # -----------------------------------
    expense = Expense(
        group_id=group_id,
        paid_by=paid_by,
        amount=data.amount,
        title=data.title,
        split_type=data.split.type,
    )

    db.add(expense)
    await db.flush()  # generates expense.id

    values = split_values(data)
    db.add_all([
        ExpenseSplit(
            expense_id=expense.id,
            user_id=uid,
            value=values.get(uid),
        )
        for uid in data.split_with
    ])

    await db.commit()

    return await get_expense(db, expense.id)


async def get_expense(db: AsyncSession, expense_id: int):
    q = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(Expense.id == expense_id, Expense.is_deleted == False)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    return expense


async def delete_expense(db: AsyncSession, user_id: int, expense_id: int):
    expense = await get_expense(db, expense_id)

    # only the payer can delete
    if expense.paid_by != user_id:
        raise HTTPException(403, "You cannot delete this expense")

    expense.is_deleted = True
    await db.commit()

    return {"status": "deleted"}


async def get_expenses_by_group(db: AsyncSession, group_id: int, user_id: int):
    await check_group_membership(db, group_id, user_id)

    q = (
        select(Expense)
        .options(selectinload(Expense.splits))
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )

    res = await db.execute(q)
    return res.scalars().all()


async def edit_expense(db: AsyncSession, data: ExpenseUpdate, expense_id: int, user_id: int):
    expense = await get_expense(db, expense_id)

    # only the payer can edit
    if expense.paid_by != user_id:
        raise HTTPException(403, "You can't edit this expense")

    await check_group_membership(db, expense.group_id, user_id)

    paid_by = data.paid_by if data.paid_by is not None else expense.paid_by
    await validate_expense(db, data, expense.group_id, paid_by)

    expense.title = data.title
    expense.amount = data.amount
    expense.paid_by = paid_by
    expense.split_type = data.split.type

    # old rows are deleted as orphans in the same commit
    values = split_values(data)
    expense.splits = [
        ExpenseSplit(user_id=uid, value=values.get(uid))
        for uid in data.split_with
    ]

    await db.commit()

    return await get_expense(db, expense.id)
