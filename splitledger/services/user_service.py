from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException
from splitledger.models.user import User
from splitledger.schemas.user import UserCreate, UserUpdate
from splitledger.services.user_queries import get_user_by_email, get_user_by_id

async def create_user(db: AsyncSession, data: UserCreate):
    existing = await get_user_by_email(db, data.email)
    if existing:
        raise HTTPException(409, "User already exists")

    user = User(
        email = data.email,
        name = data.name,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user

async def edit_user(db: AsyncSession, data: UserUpdate, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(404, "User does not exist")

    if data.name:
        user.name = data.name

    if data.email and data.email != user.email:
        if await get_user_by_email(db, data.email):
            raise HTTPException(409, "Email already in use")
        user.email = data.email

    await db.commit()
    await db.refresh(user)

    return user
