from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user
from splitledger.schemas.settlements import SettlementHistoryCreate, SettlementHistoryOut, SettlementStatusUpdate
from splitledger.services.settlement_service import (
    add_settlement,
    get_settlement_history,
    undo_settlement,
    update_settlement_status,
)

router = APIRouter()


@router.post("/", response_model=SettlementHistoryOut, status_code=201)
async def record_settlement(
    data: SettlementHistoryCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await add_settlement(db, user.id, data)


@router.patch("/{settlement_id}/status", response_model=SettlementHistoryOut)
async def change_status(
    settlement_id: int,
    data: SettlementStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await update_settlement_status(db, settlement_id, user.id, data.status)


@router.get("/group/{group_id}", response_model=list[SettlementHistoryOut])
async def history(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await get_settlement_history(db, group_id, user.id)


@router.delete("/{settlement_id}")
async def undo(
    settlement_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await undo_settlement(db, settlement_id, user.id)
