from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from hrm.database import get_db
from hrm.core.auth import get_current_user, require_super_admin
from hrm.schemas.fund import FundTransition, FundEntryResponse, FundSummary, FundListResponse
from hrm.services import funds

router = APIRouter(prefix="/hrm/funds", tags=["funds"])


@router.get("", response_model=FundListResponse)
async def list_fund_entries(
    month_key: Optional[str] = None,
    status: Optional[str] = None,
    entry_type: Optional[str] = None,
    subject_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    entries = await funds.list_entries(
        db, month_key=month_key, status=status, entry_type=entry_type, subject_id=subject_id
    )
    return FundListResponse(entries=entries, summary=await funds.summary(db))


@router.get("/me", response_model=FundSummary)
async def get_my_fund_summary(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await funds.summary(db, subject_id=current_user.id)


@router.patch("/{entry_id}", response_model=FundEntryResponse)
async def transition_fund_entry(
    entry_id: int,
    transition: FundTransition,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await funds.transition_entry(
        db,
        entry_id,
        transition.status,
        actual_amount=transition.actual_amount,
        note=transition.note,
        marked_by_id=admin.id,
    )


@router.delete("/{entry_id}", status_code=204)
async def delete_fund_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    await funds.delete_entry(db, entry_id)
