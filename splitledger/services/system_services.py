from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.models.user import User
from splitledger.models.group import Group
from splitledger.models.expense import Expense
from splitledger.models.settlement_history import SettlementHistory

async def check_db_service(db: AsyncSession):
    try:
        await db.execute(select(1))
        return {"db": True, "message": "Database is connected"}
    except Exception as e:
        return {"db": False, "error": str(e)}

async def system_health():
    return {
        "status": "ok"
    }

async def system_metrics(db: AsyncSession):
    users_q = select(func.count(User.id))
    groups_q = select(func.count(Group.id)).where(Group.is_deleted == False)
    expenses_q = select(func.count(Expense.id)).where(
        Expense.is_deleted == False
    )
    settlements_q = select(func.count(SettlementHistory.id))

    users_res = await db.execute(users_q)
    groups_res = await db.execute(groups_q)
    expenses_res = await db.execute(expenses_q)
    settlements_res = await db.execute(settlements_q)

    return {
        "users": users_res.scalar(),
        "groups": groups_res.scalar(),
        "expenses": expenses_res.scalar(),
        "settlements": settlements_res.scalar(),
    }
