from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from hrm.database import get_db
from hrm.core.auth import get_current_user, require_super_admin
from hrm.schemas.monthly import (
    MonthResponse, MonthlyResultResponse, MonthComputeResponse,
    GiftAmountUpdate, MonthlyHistoryItem
)
from hrm.services import monthly
from hrm.utils.periods import friday_week_keys_for_month

router = APIRouter(prefix="/hrm/months", tags=["monthly"])


@router.get("/me/history", response_model=List[MonthlyHistoryItem])
async def get_my_history(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await monthly.subject_history(db, current_user.id)


@router.get("/subjects/{subject_id}/history", response_model=List[MonthlyHistoryItem])
async def get_subject_history(
    subject_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.subject_history(db, subject_id)


@router.patch("/results/{result_id}/gift", response_model=MonthlyResultResponse)
async def update_gift_amount(
    result_id: int,
    gift_in: GiftAmountUpdate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.set_gift_amount(db, result_id, gift_in.gift_amount)


@router.get("/{month_key}/results", response_model=List[MonthlyResultResponse])
async def list_results(
    month_key: str,
    subject_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.list_monthly_results(db, month_key, subject_id=subject_id)


@router.post("/{month_key}/compute", response_model=MonthComputeResponse)
async def compute_month(
    month_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    results = await monthly.compute_month(db, month_key)
    return MonthComputeResponse(
        month_key=month_key,
        expected_weeks_count=len(friday_week_keys_for_month(month_key)),
        computed_subjects_count=len(results),
        results=results,
    )


@router.post("/{month_key}/subjects/{subject_id}/compute", response_model=MonthlyResultResponse)
async def compute_subject(
    month_key: str,
    subject_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.compute_for_subject(db, subject_id, month_key)


@router.post("/{month_key}/lock", response_model=MonthResponse)
async def lock_month(
    month_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.lock_month(db, month_key)


@router.post("/{month_key}/unlock", response_model=MonthResponse)
async def unlock_month(
    month_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await monthly.unlock_month(db, month_key)
