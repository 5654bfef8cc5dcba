# hrm/services/weeks.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.core.errors import InvalidInput, NotFound
from hrm.database import is_unique_violation
from hrm.models.enums import PeriodStatus
from hrm.models.week import Week
from hrm.utils import periods

logger = logging.getLogger(__name__)


def is_locked(week: Week, now: Optional[datetime] = None) -> bool:
    return periods.is_week_locked(
        week.status, week.friday_date, week.unlocked_at is not None, now
    )


async def get_week(db: AsyncSession, week_key: str) -> Optional[Week]:
    result = await db.execute(select(Week).where(Week.week_key == week_key))
    return result.scalar_one_or_none()


async def require_week(db: AsyncSession, week_key: str) -> Week:
    week = await get_week(db, week_key)
    if week is None:
        raise NotFound(f"Week {week_key} not found")
    return week


async def ensure_week(db: AsyncSession, week_key: str) -> Week:
    """Create the week at OPEN if it does not exist yet. Safe to call concurrently."""
    try:
        friday = periods.parse_week_key(week_key)
    except ValueError as e:
        raise InvalidInput(str(e))

    week = await get_week(db, week_key)
    if week is not None:
        return week

    db.add(Week(week_key=week_key, friday_date=friday, status=PeriodStatus.OPEN.value))
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e, "hrm_weeks_week_key_key", "hrm_weeks.week_key"):
            raise
        # another caller created it first; converge on their row
        logger.warning("Week %s created concurrently, re-reading", week_key)
        return await require_week(db, week_key)

    logger.info("Created week %s", week_key)
    return await require_week(db, week_key)


async def ensure_current_week(db: AsyncSession, now: Optional[datetime] = None) -> Week:
    return await ensure_week(db, periods.current_week_key(now))


async def unlock_week(db: AsyncSession, week_key: str, unlocked_by_id: Optional[int] = None) -> Week:
    week = await require_week(db, week_key)
    week.status = PeriodStatus.OPEN.value
    week.unlocked_at = datetime.now(timezone.utc)
    week.unlocked_by_id = unlocked_by_id
    await db.commit()
    await db.refresh(week)
    logger.info("Week %s unlocked by %s", week_key, unlocked_by_id)
    return week


async def lock_elapsed_weeks(db: AsyncSession, now: Optional[datetime] = None) -> List[str]:
    """
    Flip OPEN weeks whose cutoff has passed to LOCKED. Weeks re-opened by a
    super admin keep their override. The status flip is a compare-and-swap so
    concurrent runs do not fight over the same row.
    """
    result = await db.execute(
        select(Week)
        .where(Week.status == PeriodStatus.OPEN.value)
        .where(Week.unlocked_at.is_(None))
    )
    locked = []
    for week in result.scalars().all():
        if not periods.is_past_cutoff(week.friday_date, now):
            continue
        flipped = await db.execute(
            update(Week)
            .where(Week.id == week.id)
            .where(Week.status == PeriodStatus.OPEN.value)
            .values(status=PeriodStatus.LOCKED.value)
        )
        if flipped.rowcount:
            locked.append(week.week_key)
    await db.commit()
    if locked:
        logger.info("Locked elapsed weeks: %s", ", ".join(locked))
    return locked


async def list_weeks(db: AsyncSession, limit: int = 12) -> List[Week]:
    result = await db.execute(
        select(Week).order_by(Week.friday_date.desc()).limit(limit)
    )
    return list(result.scalars().all())
