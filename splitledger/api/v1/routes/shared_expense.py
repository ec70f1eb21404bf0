from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user_id
from splitledger.schemas.shared_expense import SplitCreate, SplitUpdate, SharedExpenseOut, StatusNote
from splitledger.services.shared_expense_services import (
    create_split,
    update_split,
    delete_split,
    mark_participant_paid,
    settle_split,
    waive_participant,
    dispute_participant,
    get_split,
    list_splits,
)

router = APIRouter()


@router.get("/", response_model=list[SharedExpenseOut])
async def my_splits(
    settled: bool | None = Query(None),
    group: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await list_splits(db, user_id, settled=settled, group_name=group)


@router.post("/", response_model=SharedExpenseOut, status_code=201)
async def add_split(data: SplitCreate, db: AsyncSession = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return await create_split(db, user_id, data)


@router.get("/{split_id}", response_model=SharedExpenseOut)
async def fetch(split_id: int, db: AsyncSession = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return await get_split(db, user_id, split_id)


@router.put("/{split_id}", response_model=SharedExpenseOut)
async def edit(
    split_id: int,
    data: SplitUpdate,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await update_split(db, user_id, split_id, data)


@router.delete("/{split_id}")
async def del_split(split_id: int, db: AsyncSession = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    await delete_split(db, user_id, split_id)
    return {"status": "deleted"}


@router.post("/{split_id}/participants/{participant_id}/pay", response_model=SharedExpenseOut)
async def pay(
    split_id: int,
    participant_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await mark_participant_paid(db, user_id, split_id, participant_id)


@router.post("/{split_id}/participants/{participant_id}/waive", response_model=SharedExpenseOut)
async def waive(
    split_id: int,
    participant_id: int,
    data: StatusNote | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await waive_participant(db, user_id, split_id, participant_id, note=data.note if data else None)


@router.post("/{split_id}/participants/{participant_id}/dispute", response_model=SharedExpenseOut)
async def dispute(
    split_id: int,
    participant_id: int,
    data: StatusNote | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return await dispute_participant(db, user_id, split_id, participant_id, note=data.note if data else None)


@router.post("/{split_id}/settle", response_model=SharedExpenseOut)
async def settle(split_id: int, db: AsyncSession = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return await settle_split(db, user_id, split_id)
