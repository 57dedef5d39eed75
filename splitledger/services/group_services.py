from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from datetime import datetime, timezone
from splitledger.core.dependencies import check_group_membership, fetch_member
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
from splitledger.services.user_queries import get_user_by_id

async def create_group(db: AsyncSession, name: str, creator_id: int):
    group = Group(name=name, created_by=creator_id)
    db.add(group)
    await db.flush()

    member = GroupMember(group_id=group.id, user_id=creator_id)
    db.add(member)

    await db.commit()
    await db.refresh(group)
    return group

async def add_member(db: AsyncSession, group_id: int, user_id: int, acting_user_id: int):
    await check_group_membership(db, group_id, acting_user_id)

    if not await get_user_by_id(db, user_id):
        raise HTTPException(404, "User does not exist")

    member = await fetch_member(db, user_id, group_id)

    if member and member.is_active:
        raise HTTPException(400, "User is already a member of this group")

    if member:
        # rejoining reactivates the old row
        member.is_active = True
        member.left_at = None
    else:
        member = GroupMember(group_id=group_id, user_id=user_id)
        db.add(member)

    await db.commit()
    await db.refresh(member)
    return member

async def remove_member(db: AsyncSession, group_id: int, user_id: int, acting_user_id: int):
    await check_group_membership(db, group_id, acting_user_id)

    member = await fetch_member(db, user_id, group_id)

    if not member or not member.is_active:
        raise HTTPException(404, "User is not a member of this group")

    member.is_active = False
    member.left_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(member)
    return member

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(
            GroupMember.user_id == user_id,
            GroupMember.is_active == True,
            Group.is_deleted == False,
        )
        .order_by(Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()