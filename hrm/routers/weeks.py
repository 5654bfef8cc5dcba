from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from hrm.database import get_db
from hrm.core.auth import require_marker, require_super_admin
from hrm.models.week import Week
from hrm.schemas.week import WeekResponse
from hrm.schemas.submission import ComplianceResponse, WeekComputeResponse
from hrm.services import submissions, weeks
from hrm.utils.periods import week_label

router = APIRouter(prefix="/hrm/weeks", tags=["weeks"])


def week_response(week: Week) -> WeekResponse:
    return WeekResponse(
        id=week.id,
        week_key=week.week_key,
        friday_date=week.friday_date,
        status=week.status,
        is_locked=weeks.is_locked(week),
        label=week_label(week.week_key),
        unlocked_at=week.unlocked_at,
    )


@router.get("/current", response_model=WeekResponse)
async def get_current_week(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_marker)
):
    week = await weeks.ensure_current_week(db)
    return week_response(week)


@router.get("", response_model=List[WeekResponse])
async def list_weeks(
    limit: int = 12,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_marker)
):
    return [week_response(w) for w in await weeks.list_weeks(db, limit=limit)]


@router.get("/{week_key}", response_model=WeekResponse)
async def get_week(
    week_key: str,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_marker)
):
    return week_response(await weeks.require_week(db, week_key))


@router.post("/{week_key}/unlock", response_model=WeekResponse)
async def unlock_week(
    week_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    week = await weeks.unlock_week(db, week_key, unlocked_by_id=admin.id)
    return week_response(week)


@router.post("/{week_key}/compute", response_model=WeekComputeResponse)
async def compute_week(
    week_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    counts = await submissions.compute_week(db, week_key)
    return WeekComputeResponse(week_key=week_key, **counts)


@router.get("/{week_key}/compliance", response_model=List[ComplianceResponse])
async def get_compliance(
    week_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await submissions.list_compliance(db, week_key)
