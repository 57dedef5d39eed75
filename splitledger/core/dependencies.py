from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from splitledger.db.session import get_db
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
from splitledger.services.user_queries import get_user_by_id

async def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    user = await get_user_by_id(db, x_user_id)

    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def get_group_or_404(db: AsyncSession, group_id: int):
    q_group = select(Group).where(Group.id == group_id, Group.is_deleted == False)
    res_group = await db.execute(q_group)
    group = res_group.scalar_one_or_none()

    if not group:
        raise HTTPException(404, "Group does not exist")

    return group

async def fetch_member(db: AsyncSession, user_id: int, group_id: int):
    q_member = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )

    res_member = await db.execute(q_member)
    return res_member.scalar_one_or_none()

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    await get_group_or_404(db, group_id)

    member = await fetch_member(db, user_id, group_id)

    if not member or not member.is_active:
        raise HTTPException(403, "You are not a member of this group")

    return member

async def fetch_active_member_ids(db: AsyncSession, group_id: int) -> list[int]:
    q = (
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id, GroupMember.is_active == True)
        .order_by(GroupMember.id)
    )
    res = await db.execute(q)
    return list(res.scalars().all())
