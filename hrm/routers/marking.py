from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from hrm.database import get_db
from hrm.core.auth import get_current_user, require_marker
from hrm.core.errors import Forbidden
from hrm.models.enums import Role
from hrm.models.person import Person
from hrm.schemas.submission import (
    SubmissionCreate, SubmissionResponse, MarkingListResponse, WeeklyDetail
)
from hrm.services import directory, submissions, weeks
from hrm.services.scoring import RawScore
from hrm.utils.periods import current_month_key

router = APIRouter(prefix="/hrm/marking", tags=["marking"])


async def ensure_can_view_subject(db: AsyncSession, viewer: Person, subject_id: int):
    """Subjects see their own marks, super admins see all, markers see their assignees."""
    if viewer.id == subject_id or viewer.role == Role.SUPER_ADMIN:
        return
    if viewer.role == Role.ADMIN and await directory.is_assignment_active(db, viewer.id, subject_id):
        return
    raise Forbidden("Not allowed to view this employee's marks")


@router.get("", response_model=MarkingListResponse)
async def get_marking_list(
    week_key: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    marker = Depends(require_marker)
):
    if week_key is None:
        week_key = (await weeks.ensure_current_week(db)).week_key
    return await submissions.marking_list(db, marker.id, week_key)


@router.post("/submit", response_model=SubmissionResponse)
async def submit_marking(
    submission_in: SubmissionCreate,
    db: AsyncSession = Depends(get_db),
    marker = Depends(require_marker)
):
    raw_scores = [RawScore(item.criterion_id, item.score_raw) for item in submission_in.items]
    return await submissions.submit_scores(
        db,
        week_key=submission_in.week_key,
        marker_id=marker.id,
        subject_id=submission_in.subject_id,
        raw_scores=raw_scores,
        comment=submission_in.comment,
    )


@router.get("/me/weekly", response_model=List[WeeklyDetail])
async def get_my_weekly_details(
    month_key: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await submissions.weekly_details(db, current_user.id, month_key or current_month_key())


@router.get("/subjects/{subject_id}/weekly", response_model=List[WeeklyDetail])
async def get_subject_weekly_details(
    subject_id: int,
    month_key: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await ensure_can_view_subject(db, current_user, subject_id)
    return await submissions.weekly_details(db, subject_id, month_key or current_month_key())
