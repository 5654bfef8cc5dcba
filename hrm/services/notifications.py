# hrm/services/notifications.py
"""
What the outbound relay needs from the core: whether a reminder or marksheet
is due, and a place to record what was delivered. Sending is not done here.
"""
import logging
from collections import defaultdict
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.core.errors import InvalidInput
from hrm.models.enums import DeliveryStatus, EmailType, NotificationType, Tier
from hrm.models.month import Month, MonthlyResult
from hrm.models.notification import EmailLog, Notification
from hrm.models.submission import MarkerCompliance, Submission
from hrm.services import directory, weeks
from hrm.services.monthly import require_month

logger = logging.getLogger(__name__)

TIER_EMOJI = {
    Tier.BONUS.value: "🎁",
    Tier.APPRECIATION.value: "⭐",
    Tier.IMPROVEMENT.value: "📈",
    Tier.FINE.value: "⚠️",
}


async def marksheet_logged(db: AsyncSession, subject_id: int, month_key: str) -> bool:
    """True once a marksheet email for the subject and month was delivered."""
    month = await require_month(db, month_key)
    result = await db.execute(
        select(EmailLog.id)
        .where(EmailLog.subject_id == subject_id)
        .where(EmailLog.month_id == month.id)
        .where(EmailLog.email_type == EmailType.MARKSHEET.value)
        .where(EmailLog.delivery_status == DeliveryStatus.SENT.value)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def record_delivery(
    db: AsyncSession,
    subject_id: int,
    month_key: str,
    email_type: str,
    delivery_status: str,
    recipient_email: Optional[str] = None,
    subject_line: Optional[str] = None,
    error_message: Optional[str] = None,
    sent_by_id: Optional[int] = None,
) -> EmailLog:
    if email_type not in {t.value for t in EmailType}:
        raise InvalidInput(f"Invalid email type {email_type}")
    if delivery_status not in {s.value for s in DeliveryStatus}:
        raise InvalidInput(f"Invalid delivery status {delivery_status}")
    await directory.get_person(db, subject_id)
    month = await require_month(db, month_key)

    log = EmailLog(
        subject_id=subject_id,
        month_id=month.id,
        email_type=email_type,
        delivery_status=delivery_status,
        recipient_email=recipient_email,
        subject_line=subject_line,
        error_message=error_message,
        sent_by_id=sent_by_id,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    logger.info("%s email for subject %s (%s): %s", email_type, subject_id, month_key, delivery_status)
    return log


async def list_email_logs(db: AsyncSession, subject_id: int, month_key: str) -> List[EmailLog]:
    month = await require_month(db, month_key)
    result = await db.execute(
        select(EmailLog)
        .where(EmailLog.subject_id == subject_id)
        .where(EmailLog.month_id == month.id)
        .order_by(EmailLog.id.desc())
    )
    return list(result.scalars().all())


def _notify(db: AsyncSession, person_id: int, type_: NotificationType, title: str, message: str, link: str):
    db.add(Notification(
        person_id=person_id,
        type=type_.value,
        title=title,
        message=message,
        link=link,
        is_read=False,
    ))


async def notify_pending_markings(db: AsyncSession, week_key: str) -> int:
    """One notification per marker that still has subjects to mark this week."""
    week = await weeks.require_week(db, week_key)
    pairs = await directory.active_assignment_pairs(db)
    result = await db.execute(
        select(Submission.marker_id, Submission.subject_id).where(Submission.week_id == week.id)
    )
    done = {(row.marker_id, row.subject_id) for row in result.all()}

    pending = defaultdict(int)
    for pair in pairs:
        if pair not in done:
            pending[pair[0]] += 1

    for marker_id, count in pending.items():
        _notify(
            db, marker_id, NotificationType.ADMIN_PENDING_MARKING,
            "Pending KPI Markings",
            f"You have {count} pending marking(s) for week {week_key}. Please submit before Friday end.",
            "/hrm/marking",
        )
    await db.commit()
    return len(pending)


async def notify_missed_markings(db: AsyncSession, week_key: str) -> int:
    week = await weeks.require_week(db, week_key)
    result = await db.execute(
        select(MarkerCompliance)
        .where(MarkerCompliance.week_id == week.id)
        .where(MarkerCompliance.missed_count > 0)
    )
    records = list(result.scalars().all())
    for record in records:
        _notify(
            db, record.marker_id, NotificationType.ADMIN_MISSED_MARKING,
            "Missed KPI Markings",
            f"You missed {record.missed_count} marking(s) for week {week_key}. "
            "This may affect your compliance record.",
            "/hrm/marking",
        )
    await db.commit()
    return len(records)


async def notify_month_results(db: AsyncSession, month_key: str) -> int:
    result = await db.execute(
        select(MonthlyResult)
        .join(Month, Month.id == MonthlyResult.month_id)
        .where(Month.month_key == month_key)
    )
    results = list(result.scalars().all())
    for monthly in results:
        _notify(
            db, monthly.subject_id, NotificationType.MONTH_RESULT_READY,
            "Monthly KPI Results Ready",
            f"Your {month_key} results are ready! {TIER_EMOJI.get(monthly.tier, '')} "
            f"Tier: {monthly.tier} | Score: {monthly.monthly_score:.2f}",
            f"/hrm/monthly/{month_key}",
        )
    await db.commit()
    return len(results)


async def list_notifications(db: AsyncSession, person_id: int, unread_only: bool = False) -> List[Notification]:
    query = (
        select(Notification)
        .where(Notification.person_id == person_id)
        .order_by(Notification.id.desc())
    )
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query)
    return list(result.scalars().all())


async def mark_read(db: AsyncSession, person_id: int, notification_ids: Optional[List[int]] = None) -> int:
    """Mark the given notifications (or all of them) as read for this person."""
    stmt = (
        update(Notification)
        .where(Notification.person_id == person_id)
        .where(Notification.is_read.is_(False))
        .values(is_read=True)
    )
    if notification_ids:
        stmt = stmt.where(Notification.id.in_(notification_ids))
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount

