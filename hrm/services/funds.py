# hrm/services/funds.py
"""
Fine and bonus settlement ledger.

Entries are created in DUE by the monthly rollup and moved by hand:
FINE entries may become COLLECTED, BONUS entries may become PAID, and
either may be moved back to DUE to correct a mistake. Only DUE entries
can be settled.
"""
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.core.errors import InvalidInput, NotFound
from hrm.models.enums import FundEntryType, FundStatus
from hrm.models.fund import FundLogEntry
from hrm.models.month import Month, MonthlyResult

logger = logging.getLogger(__name__)

SETTLED_STATUS = {
    FundEntryType.FINE.value: FundStatus.COLLECTED.value,
    FundEntryType.BONUS.value: FundStatus.PAID.value,
}


def is_valid_status_for_type(entry_type: str, status: str) -> bool:
    if status == FundStatus.DUE:
        return True
    return SETTLED_STATUS.get(entry_type) == status


async def _entry_for(db: AsyncSession, monthly_result_id: int, entry_type: str) -> Optional[FundLogEntry]:
    result = await db.execute(
        select(FundLogEntry)
        .where(FundLogEntry.monthly_result_id == monthly_result_id)
        .where(FundLogEntry.entry_type == entry_type)
    )
    return result.scalar_one_or_none()


async def sync_for_result(db: AsyncSession, monthly_result: MonthlyResult) -> None:
    """
    Bring the result's FINE and BONUS entries in line with its amounts.
    Settled entries are never rewritten. Flushes, does not commit.
    """
    wanted = {
        FundEntryType.FINE.value: (monthly_result.final_fine > 0, monthly_result.final_fine),
        FundEntryType.BONUS.value: (monthly_result.gift_type is not None, monthly_result.gift_amount or 0),
    }
    for entry_type, (needed, amount) in wanted.items():
        entry = await _entry_for(db, monthly_result.id, entry_type)
        if entry is None:
            if needed:
                db.add(FundLogEntry(
                    monthly_result_id=monthly_result.id,
                    month_id=monthly_result.month_id,
                    subject_id=monthly_result.subject_id,
                    entry_type=entry_type,
                    status=FundStatus.DUE.value,
                    expected_amount=amount,
                ))
            continue

        if entry.status != FundStatus.DUE:
            if not needed or entry.expected_amount != amount:
                logger.warning(
                    "Fund entry %s is %s; leaving it although the result now expects %s",
                    entry.id, entry.status, amount if needed else "no entry",
                )
            continue

        if needed:
            entry.expected_amount = amount
        else:
            await db.delete(entry)
    await db.flush()


async def get_entry(db: AsyncSession, entry_id: int) -> FundLogEntry:
    entry = await db.get(FundLogEntry, entry_id)
    if entry is None:
        raise NotFound(f"Fund log {entry_id} not found")
    return entry


async def transition_entry(
    db: AsyncSession,
    entry_id: int,
    new_status: str,
    actual_amount: Optional[float] = None,
    note: Optional[str] = None,
    marked_by_id: Optional[int] = None,
) -> FundLogEntry:
    entry = await get_entry(db, entry_id)

    if new_status not in {s.value for s in FundStatus}:
        raise InvalidInput(f"Invalid status {new_status}")
    if not is_valid_status_for_type(entry.entry_type, new_status):
        raise InvalidInput(f"Invalid status {new_status} for entry type {entry.entry_type}")

    if new_status == FundStatus.DUE:
        entry.actual_amount = None
        entry.marked_by_id = None
        entry.marked_at = None
    else:
        if entry.status != FundStatus.DUE:
            raise InvalidInput(f"Fund entry {entry_id} is already {entry.status}; move it back to DUE first")
        if new_status == FundStatus.COLLECTED:
            entry.actual_amount = entry.expected_amount
        else:
            if actual_amount is None or not math.isfinite(actual_amount) or actual_amount <= 0:
                raise InvalidInput("Bonus paid amount is required and must be > 0")
            entry.actual_amount = actual_amount
        entry.marked_by_id = marked_by_id
        entry.marked_at = datetime.now(timezone.utc)

    entry.status = new_status
    if note is not None:
        entry.note = note.strip() or None
    await db.commit()
    await db.refresh(entry)
    logger.info("Fund entry %s -> %s by %s", entry_id, new_status, marked_by_id)
    return entry


async def delete_entry(db: AsyncSession, entry_id: int) -> None:
    entry = await get_entry(db, entry_id)
    await db.delete(entry)
    await db.commit()
    logger.warning("Fund entry %s (%s, %s) deleted", entry_id, entry.entry_type, entry.status)


async def list_entries(
    db: AsyncSession,
    month_key: Optional[str] = None,
    status: Optional[str] = None,
    entry_type: Optional[str] = None,
    subject_id: Optional[int] = None,
) -> List[FundLogEntry]:
    query = select(FundLogEntry).order_by(FundLogEntry.id.desc())
    if month_key:
        query = query.join(Month, Month.id == FundLogEntry.month_id).where(Month.month_key == month_key)
    if status:
        query = query.where(FundLogEntry.status == status)
    if entry_type:
        query = query.where(FundLogEntry.entry_type == entry_type)
    if subject_id is not None:
        query = query.where(FundLogEntry.subject_id == subject_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def summary(db: AsyncSession, subject_id: Optional[int] = None) -> dict:
    query = select(FundLogEntry)
    if subject_id is not None:
        query = query.where(FundLogEntry.subject_id == subject_id)
    result = await db.execute(query)

    totals = {"fine_collected": 0.0, "bonus_paid": 0.0, "due_fine": 0.0, "due_bonus": 0.0}
    for entry in result.scalars().all():
        actual = entry.actual_amount if entry.actual_amount is not None else entry.expected_amount
        if entry.entry_type == FundEntryType.FINE:
            if entry.status == FundStatus.COLLECTED:
                totals["fine_collected"] += actual
            elif entry.status == FundStatus.DUE:
                totals["due_fine"] += entry.expected_amount
        else:
            if entry.status == FundStatus.PAID:
                totals["bonus_paid"] += actual
            elif entry.status == FundStatus.DUE:
                totals["due_bonus"] += entry.expected_amount

    totals["current_balance"] = totals["fine_collected"] - totals["bonus_paid"]
    return totals
