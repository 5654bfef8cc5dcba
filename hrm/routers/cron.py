import logging
from datetime import timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from hrm.database import get_db
from hrm.core.auth import verify_cron_secret
from hrm.core.errors import NotFound
from hrm.models.enums import PeriodStatus
from hrm.services import monthly, notifications, submissions, weeks
from hrm.utils import periods

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/hrm/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post("/ensure-week")
async def ensure_week(db: AsyncSession = Depends(get_db)):
    """Create the current Friday week and nudge markers with pending work."""
    week = await weeks.ensure_current_week(db)
    notified = await notifications.notify_pending_markings(db, week.week_key)
    return {"week_key": week.week_key, "notified_markers": notified}


@router.post("/compute-last-friday")
async def compute_last_friday(db: AsyncSession = Depends(get_db)):
    """Lock elapsed weeks, then compute results and compliance for the last finished week."""
    now = periods.local_now()
    friday = periods.current_friday(now)
    if not periods.is_past_cutoff(friday, now):
        friday -= timedelta(days=7)
    week_key = periods.week_key_for(friday)

    locked = await weeks.lock_elapsed_weeks(db, now)
    await weeks.ensure_week(db, week_key)
    counts = await submissions.compute_week(db, week_key)
    notified = await notifications.notify_missed_markings(db, week_key)
    return {
        "week_key": week_key,
        "locked_weeks": locked,
        "notified_markers": notified,
        **counts,
    }


@router.post("/compute-month-if-ended")
async def compute_month_if_ended(db: AsyncSession = Depends(get_db)):
    """Compute the previous calendar month unless it has already been locked."""
    month_key = periods.previous_month_key(periods.current_month_key())
    month = await monthly.get_month(db, month_key)
    if month is not None and month.status == PeriodStatus.LOCKED:
        return {"month_key": month_key, "computed": False, "reason": "locked"}

    try:
        results = await monthly.compute_month(db, month_key)
    except NotFound:
        logger.info("No submissions for %s, skipping monthly compute", month_key)
        return {"month_key": month_key, "computed": False, "reason": "no submissions"}

    notified = await notifications.notify_month_results(db, month_key)
    return {
        "month_key": month_key,
        "computed": True,
        "computed_subjects_count": len(results),
        "notified_subjects": notified,
    }
