# hrm/services/monthly.py
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.config import settings
from hrm.core.errors import Conflict, InvalidInput, NotFound
from hrm.database import is_unique_violation
from hrm.models.enums import PeriodStatus
from hrm.models.month import Month, MonthlyResult
from hrm.models.submission import WeeklyResult
from hrm.models.week import Week
from hrm.services import funds, submissions
from hrm.services.outcomes import compute_monthly_outcome
from hrm.services.scoring import round2
from hrm.utils import periods

logger = logging.getLogger(__name__)

RESULT_KEYS = (
    "uq_monthly_result_subject_month",
    "hrm_monthly_results.",
    "uq_fund_log_result_type",
    "hrm_fund_logs.",
)


def _parse(month_key: str):
    try:
        return periods.month_date_range(month_key)
    except ValueError as e:
        raise InvalidInput(str(e))


async def get_month(db: AsyncSession, month_key: str) -> Optional[Month]:
    result = await db.execute(select(Month).where(Month.month_key == month_key))
    return result.scalar_one_or_none()


async def require_month(db: AsyncSession, month_key: str) -> Month:
    month = await get_month(db, month_key)
    if month is None:
        raise NotFound(f"Month {month_key} not found")
    return month


async def ensure_month(db: AsyncSession, month_key: str) -> Month:
    start, end = _parse(month_key)
    month = await get_month(db, month_key)
    if month is not None:
        return month

    db.add(Month(month_key=month_key, start_date=start, end_date=end, status=PeriodStatus.OPEN.value))
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e, "hrm_months_month_key_key", "hrm_months.month_key"):
            raise
        logger.warning("Month %s created concurrently, re-reading", month_key)
    else:
        logger.info("Created month %s", month_key)
    return await require_month(db, month_key)


async def _set_month_status(db: AsyncSession, month_key: str, status: PeriodStatus) -> Month:
    month = await require_month(db, month_key)
    month.status = status.value
    await db.commit()
    await db.refresh(month)
    logger.info("Month %s is now %s", month_key, status.value)
    return month


async def lock_month(db: AsyncSession, month_key: str) -> Month:
    return await _set_month_status(db, month_key, PeriodStatus.LOCKED)


async def unlock_month(db: AsyncSession, month_key: str) -> Month:
    return await _set_month_status(db, month_key, PeriodStatus.OPEN)


async def previous_month_tier(db: AsyncSession, subject_id: int, month_key: str) -> Optional[str]:
    result = await db.execute(
        select(MonthlyResult.tier)
        .join(Month, Month.id == MonthlyResult.month_id)
        .where(Month.month_key == periods.previous_month_key(month_key))
        .where(MonthlyResult.subject_id == subject_id)
    )
    return result.scalar_one_or_none()


async def compute_for_subject(
    db: AsyncSession,
    subject_id: int,
    month_key: str,
    empty_week_policy: Optional[str] = None,
) -> MonthlyResult:
    """
    Roll the subject's weekly results for the month into one outcome.

    Only weeks whose Friday falls inside the month count. A week qualifies
    when at least one marker submitted for it. Recomputing an OPEN month
    overwrites the previous result; LOCKED months are frozen.
    """
    _parse(month_key)
    month = await require_month(db, month_key)
    if month.status == PeriodStatus.LOCKED:
        raise Conflict(f"Month {month_key} is locked. Unlock it before recomputing.")
    month_id = month.id

    week_keys = periods.friday_week_keys_for_month(month_key)
    expected_weeks = len(week_keys)

    result = await db.execute(
        select(WeeklyResult.weekly_avg_score)
        .join(Week, Week.id == WeeklyResult.week_id)
        .where(Week.week_key.in_(week_keys))
        .where(WeeklyResult.subject_id == subject_id)
        .where(WeeklyResult.submitted_markers_count > 0)
    )
    scores = list(result.scalars().all())
    if not scores:
        raise NotFound(f"No weekly results for subject {subject_id} in {month_key}")

    policy = empty_week_policy or settings.EMPTY_WEEK_POLICY
    if policy == "zero":
        mean = sum(scores) / expected_weeks
    elif policy == "exclude":
        mean = sum(scores) / len(scores)
    else:
        raise InvalidInput(f"Unknown empty week policy {policy}")

    previous_tier = await previous_month_tier(db, subject_id, month_key)
    # bands are judged on the exact mean; only the stored score is rounded
    outcome = compute_monthly_outcome(mean, previous_tier)
    monthly_score = round2(mean)

    for attempt in (1, 2):
        try:
            result_id = await _upsert_result(
                db, subject_id, month_id, monthly_score, outcome, len(scores), expected_weeks
            )
            break
        except IntegrityError as e:
            await db.rollback()
            if not is_unique_violation(e, *RESULT_KEYS):
                raise
            if attempt == 2:
                raise Conflict("Monthly result was written concurrently; retry")
            logger.warning("Concurrent rollup for subject %s in %s, retrying", subject_id, month_key)

    logger.info(
        "Month %s subject %s: score=%.2f tier=%s fine=%s (previous tier %s)",
        month_key, subject_id, monthly_score, outcome.tier.value, outcome.final_fine, previous_tier,
    )
    return await get_monthly_result(db, result_id)


async def _upsert_result(
    db: AsyncSession,
    subject_id: int,
    month_id: int,
    monthly_score: float,
    outcome,
    weeks_used: int,
    expected_weeks: int,
) -> int:
    existing = await db.execute(
        select(MonthlyResult)
        .where(MonthlyResult.subject_id == subject_id)
        .where(MonthlyResult.month_id == month_id)
        .with_for_update()
    )
    monthly = existing.scalar_one_or_none()
    if monthly is None:
        monthly = MonthlyResult(subject_id=subject_id, month_id=month_id, gift_amount=0)
        db.add(monthly)

    # an administrator's gift amount survives a recompute that keeps the gift
    if outcome.gift_type is None or monthly.gift_type != outcome.gift_type:
        monthly.gift_amount = 0

    monthly.monthly_score = monthly_score
    monthly.tier = outcome.tier.value
    monthly.action_type = outcome.action_type.value
    monthly.base_fine = outcome.base_fine
    monthly.month_fine_count = outcome.month_fine_count
    monthly.final_fine = outcome.final_fine
    monthly.gift_type = outcome.gift_type
    monthly.weeks_count_used = weeks_used
    monthly.expected_weeks_count = expected_weeks
    monthly.is_complete_month = weeks_used >= expected_weeks
    monthly.computed_at = datetime.now(timezone.utc)
    await db.flush()

    await funds.sync_for_result(db, monthly)
    await db.commit()
    return monthly.id


async def compute_month(
    db: AsyncSession,
    month_key: str,
    refresh_weeks: bool = True,
) -> List[MonthlyResult]:
    """Compute every subject with weekly results in the month, creating the month if needed."""
    month = await ensure_month(db, month_key)
    if month.status == PeriodStatus.LOCKED:
        raise Conflict(f"Month {month_key} is locked. Unlock it before recomputing.")

    week_keys = periods.friday_week_keys_for_month(month_key)
    if refresh_weeks:
        existing = await db.execute(select(Week.week_key).where(Week.week_key.in_(week_keys)))
        for week_key in existing.scalars().all():
            await submissions.compute_week(db, week_key)

    result = await db.execute(
        select(WeeklyResult.subject_id)
        .join(Week, Week.id == WeeklyResult.week_id)
        .where(Week.week_key.in_(week_keys))
        .where(WeeklyResult.submitted_markers_count > 0)
        .distinct()
    )
    subject_ids = sorted(result.scalars().all())
    if not subject_ids:
        raise NotFound(f"No submissions found for {month_key}")

    results = [await compute_for_subject(db, subject_id, month_key) for subject_id in subject_ids]
    logger.info("Computed month %s for %s subjects", month_key, len(results))
    return results


async def get_monthly_result(db: AsyncSession, result_id: int) -> MonthlyResult:
    result = await db.execute(
        select(MonthlyResult)
        .where(MonthlyResult.id == result_id)
        .execution_options(populate_existing=True)
    )
    monthly = result.scalar_one_or_none()
    if monthly is None:
        raise NotFound(f"Monthly result {result_id} not found")
    return monthly


async def list_monthly_results(
    db: AsyncSession, month_key: str, subject_id: Optional[int] = None
) -> List[MonthlyResult]:
    query = (
        select(MonthlyResult)
        .join(Month, Month.id == MonthlyResult.month_id)
        .where(Month.month_key == month_key)
        .order_by(MonthlyResult.monthly_score.desc())
    )
    if subject_id is not None:
        query = query.where(MonthlyResult.subject_id == subject_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def subject_history(db: AsyncSession, subject_id: int) -> List[dict]:
    result = await db.execute(
        select(Month.month_key, MonthlyResult)
        .join(Month, Month.id == MonthlyResult.month_id)
        .where(MonthlyResult.subject_id == subject_id)
        .order_by(Month.month_key.desc())
    )
    return [{"month_key": row[0], "result": row[1]} for row in result.all()]


async def set_gift_amount(db: AsyncSession, result_id: int, amount: float) -> MonthlyResult:
    monthly = await get_monthly_result(db, result_id)
    month = await db.get(Month, monthly.month_id)
    if month.status == PeriodStatus.LOCKED:
        raise Conflict(f"Month {month.month_key} is locked")
    if monthly.gift_type is None:
        raise InvalidInput(f"Tier {monthly.tier} carries no gift")
    if not math.isfinite(amount) or amount < 0:
        raise InvalidInput("Gift amount must be a non-negative number")

    monthly.gift_amount = amount
    await funds.sync_for_result(db, monthly)
    await db.commit()
    logger.info("Gift amount for monthly result %s set to %s", result_id, amount)
    return await get_monthly_result(db, result_id)
