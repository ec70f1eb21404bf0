from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user_id
from splitledger.schemas.balances import BalanceSummary, OwedBreakdown
from splitledger.services.balance_services import get_summary, get_owed_by_breakdown, get_owed_to_breakdown

router = APIRouter()


@router.get("/summary", response_model=BalanceSummary)
async def summary(
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await get_summary(db, user_id)


@router.get("/owed-by-me", response_model=OwedBreakdown)
async def owed_by_me(
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await get_owed_by_breakdown(db, user_id)


@router.get("/owed-to-me", response_model=OwedBreakdown)
async def owed_to_me(
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await get_owed_to_breakdown(db, user_id)
