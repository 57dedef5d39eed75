from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user
from splitledger.schemas.balances import BalanceOut
from splitledger.schemas.user import UserCreate, UserOut, UserUpdate
from splitledger.services.settlement_service import compute_user_global_balance
from splitledger.services.user_service import create_user, edit_user

router = APIRouter()


@router.post("/", response_model=UserOut, status_code=201)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await create_user(db, data)


@router.get("/me", response_model=UserOut)
async def get_user(user = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserOut)
async def update_user(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await edit_user(db, data, user.id)


@router.get("/me/balance", response_model=BalanceOut)
async def my_global_balance(
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    balance = await compute_user_global_balance(db, user.id)
    return BalanceOut.from_balance(balance)
