from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.services.group_services import create_group, add_member, remove_member, list_group_for_user
from splitledger.services.settlement_service import compute_group_settlements, is_group_settled
from splitledger.schemas.balances import BalanceOut, GroupSettledOut
from splitledger.schemas.group import GroupCreate, GroupMemberOut, GroupOut
from splitledger.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201)
async def create_new_group(
    data:GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    group = await create_group(db, data.name, user.id)
    return group

@router.get("/my-groups", response_model=list[GroupOut])
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.post("/{group_id}/members/{user_id}", response_model=GroupMemberOut)
async def add_user_to_group(group_id: int, user_id: int, db: AsyncSession = Depends(get_db), user=Depends(get_current_user)):
    return await add_member(db, group_id, user_id, user.id)

@router.delete("/{group_id}/members/{user_id}", response_model=GroupMemberOut)
async def remove_user_from_group(group_id: int, user_id: int, db: AsyncSession = Depends(get_db), user=Depends(get_current_user)):
    return await remove_member(db, group_id, user_id, user.id)

@router.get("/{group_id}/balance", response_model=BalanceOut)
async def group_balance(group_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    balance = await compute_group_settlements(db, group_id, user.id)
    return BalanceOut.from_balance(balance)

@router.get("/{group_id}/settled", response_model=GroupSettledOut)
async def group_settled(group_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    settled = await is_group_settled(db, group_id, user.id)
    return GroupSettledOut(group_id=group_id, settled=settled)
