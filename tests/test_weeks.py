import pytest
from sqlalchemy import func, select

from conftest import FRIDAY_NOON, NEXT_MONDAY, WEEK
from hrm.core.errors import InvalidInput, NotFound
from hrm.models.week import Week
from hrm.services import weeks


async def test_ensure_week_is_idempotent(db):
    first = await weeks.ensure_week(db, WEEK)
    second = await weeks.ensure_week(db, WEEK)
    assert first.id == second.id
    assert first.status == "OPEN"

    count = await db.execute(select(func.count(Week.id)))
    assert count.scalar_one() == 1


async def test_ensure_week_rejects_non_friday(db):
    with pytest.raises(InvalidInput):
        await weeks.ensure_week(db, "2025-06-14")


async def test_ensure_current_week(db):
    week = await weeks.ensure_current_week(db, NEXT_MONDAY)
    assert week.week_key == WEEK


async def test_lock_state_is_derived_from_the_clock(db):
    week = await weeks.ensure_week(db, WEEK)
    assert not weeks.is_locked(week, FRIDAY_NOON)
    # stored status is still OPEN
    assert weeks.is_locked(week, NEXT_MONDAY)


async def test_lock_elapsed_weeks_skips_unlocked_and_current(db):
    await weeks.ensure_week(db, "2025-06-06")
    await weeks.ensure_week(db, WEEK)
    await weeks.ensure_week(db, "2025-05-30")
    await weeks.unlock_week(db, "2025-05-30", unlocked_by_id=None)

    locked = await weeks.lock_elapsed_weeks(db, FRIDAY_NOON)
    assert locked == ["2025-06-06"]

    # nothing left to flip on a second run
    assert await weeks.lock_elapsed_weeks(db, FRIDAY_NOON) == []


async def test_unlock_missing_week(db):
    with pytest.raises(NotFound):
        await weeks.unlock_week(db, "2025-01-03")


async def test_list_weeks_newest_first(db):
    for key in ("2025-05-30", WEEK, "2025-06-06"):
        await weeks.ensure_week(db, key)
    assert [w.week_key for w in await weeks.list_weeks(db, limit=2)] == [WEEK, "2025-06-06"]
