# hrm/services/submissions.py
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from hrm.database import is_unique_violation
from hrm.models.enums import ComplianceStatus
from hrm.models.person import Person
from hrm.models.submission import Submission, SubmissionItem, WeeklyResult, MarkerCompliance
from hrm.models.week import Week
from hrm.services import criteria, directory, scoring, weeks
from hrm.services.scoring import RawScore
from hrm.utils import periods

logger = logging.getLogger(__name__)

# duplicate keys that mean another request wrote the same row first
SUBMISSION_KEYS = (
    "uq_submission_week_marker_subject",
    "hrm_submissions.",
    "uq_weekly_result_week_subject",
    "hrm_weekly_results.",
)


async def submit_scores(
    db: AsyncSession,
    week_key: str,
    marker_id: int,
    subject_id: int,
    raw_scores: Sequence[RawScore],
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Submission:
    """
    Store a marker's scores for a subject in a week.

    Resubmitting replaces the previous items wholesale and overwrites the
    total, comment and timestamp. The subject's weekly result is refreshed
    in the same transaction.
    """
    week = await weeks.require_week(db, week_key)
    if weeks.is_locked(week, now):
        raise Forbidden(f"Week {week_key} is locked")

    marker = await directory.get_person(db, marker_id)
    subject = await directory.get_person(db, subject_id)
    if not marker.is_active or not subject.is_active:
        raise Forbidden("Inactive people cannot be marked or mark others")
    if not await directory.is_assignment_active(db, marker_id, subject_id):
        raise Forbidden("No active assignment for this subject")

    criteria_set = await criteria.active_set_for(db, subject_id)
    if criteria_set is None:
        raise NotFound("Subject has no active criteria set")

    items = criteria.scoring_items(criteria_set)
    validation = scoring.validate(items, raw_scores)
    if not validation.valid:
        raise InvalidInput("Invalid scores", validation.errors)
    total = scoring.score(items, raw_scores)

    week_id, criteria_set_id = week.id, criteria_set.id
    for attempt in (1, 2):
        try:
            submission_id = await _upsert_submission(
                db, week_id, marker_id, subject_id, criteria_set_id, raw_scores, total, comment
            )
            break
        except IntegrityError as e:
            await db.rollback()
            if not is_unique_violation(e, *SUBMISSION_KEYS):
                raise
            if attempt == 2:
                raise Conflict("Submission was written concurrently; retry")
            logger.warning(
                "Concurrent submission for week %s marker %s subject %s, retrying",
                week_key, marker_id, subject_id,
            )

    logger.info(
        "Submission stored: week=%s marker=%s subject=%s total=%.2f",
        week_key, marker_id, subject_id, total,
    )
    return await get_submission(db, submission_id)


async def _upsert_submission(
    db: AsyncSession,
    week_id: int,
    marker_id: int,
    subject_id: int,
    criteria_set_id: int,
    raw_scores: Sequence[RawScore],
    total: float,
    comment: Optional[str],
) -> int:
    result = await db.execute(
        select(Submission)
        .where(Submission.week_id == week_id)
        .where(Submission.marker_id == marker_id)
        .where(Submission.subject_id == subject_id)
        .with_for_update()
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        submission = Submission(week_id=week_id, marker_id=marker_id, subject_id=subject_id)
        db.add(submission)
    else:
        submission.items.clear()
        await db.flush()

    submission.criteria_set_id = criteria_set_id
    submission.total_score = total
    submission.comment = comment or None
    submission.submitted_at = datetime.now(timezone.utc)
    submission.items.extend(
        SubmissionItem(criterion_id=r.criterion_id, score_raw=r.score_raw) for r in raw_scores
    )
    await db.flush()

    await recompute_weekly_result(db, week_id, subject_id)
    await db.commit()
    return submission.id


async def get_submission(db: AsyncSession, submission_id: int) -> Submission:
    result = await db.execute(
        select(Submission)
        .where(Submission.id == submission_id)
        .execution_options(populate_existing=True)
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        raise NotFound(f"Submission {submission_id} not found")
    return submission


async def recompute_weekly_result(db: AsyncSession, week_id: int, subject_id: int) -> WeeklyResult:
    """Average the subject's submissions for the week. Flushes, does not commit."""
    result = await db.execute(
        select(Submission.marker_id, Submission.total_score)
        .where(Submission.week_id == week_id)
        .where(Submission.subject_id == subject_id)
    )
    rows = result.all()
    expected_markers = set(await directory.active_markers_for_subject(db, subject_id))
    submitted_markers = {row.marker_id for row in rows}

    avg = scoring.round2(sum(row.total_score for row in rows) / len(rows)) if rows else 0.0

    existing = await db.execute(
        select(WeeklyResult)
        .where(WeeklyResult.week_id == week_id)
        .where(WeeklyResult.subject_id == subject_id)
    )
    weekly = existing.scalar_one_or_none()
    if weekly is None:
        weekly = WeeklyResult(week_id=week_id, subject_id=subject_id)
        db.add(weekly)
    weekly.weekly_avg_score = avg
    weekly.expected_markers_count = len(expected_markers)
    weekly.submitted_markers_count = len(submitted_markers)
    weekly.is_complete = expected_markers <= submitted_markers
    weekly.computed_at = datetime.now(timezone.utc)
    await db.flush()
    return weekly


async def compute_week(db: AsyncSession, week_key: str) -> Dict[str, int]:
    """Refresh every subject's weekly result and every marker's compliance for a week."""
    week = await weeks.require_week(db, week_key)

    result = await db.execute(
        select(Submission.marker_id, Submission.subject_id).where(Submission.week_id == week.id)
    )
    submitted = result.all()
    pairs = await directory.active_assignment_pairs(db)

    subject_ids = {row.subject_id for row in submitted} | {s for _, s in pairs}
    for subject_id in sorted(subject_ids):
        await recompute_weekly_result(db, week.id, subject_id)

    expected_by_marker = defaultdict(set)
    for marker_id, subject_id in pairs:
        expected_by_marker[marker_id].add(subject_id)
    submitted_by_marker = defaultdict(set)
    for row in submitted:
        submitted_by_marker[row.marker_id].add(row.subject_id)

    now = datetime.now(timezone.utc)
    for marker_id, expected in expected_by_marker.items():
        done = expected & submitted_by_marker[marker_id]
        missed = len(expected) - len(done)
        existing = await db.execute(
            select(MarkerCompliance)
            .where(MarkerCompliance.week_id == week.id)
            .where(MarkerCompliance.marker_id == marker_id)
        )
        compliance = existing.scalar_one_or_none()
        if compliance is None:
            compliance = MarkerCompliance(week_id=week.id, marker_id=marker_id)
            db.add(compliance)
        compliance.expected_count = len(expected)
        compliance.submitted_count = len(done)
        compliance.missed_count = missed
        compliance.status = (ComplianceStatus.OK if missed == 0 else ComplianceStatus.MISSED).value
        compliance.computed_at = now

    await db.commit()
    logger.info(
        "Computed week %s: %s subjects, %s markers",
        week_key, len(subject_ids), len(expected_by_marker),
    )
    return {"subjects_computed": len(subject_ids), "markers_computed": len(expected_by_marker)}


async def list_compliance(db: AsyncSession, week_key: str) -> List[MarkerCompliance]:
    week = await weeks.require_week(db, week_key)
    result = await db.execute(
        select(MarkerCompliance)
        .where(MarkerCompliance.week_id == week.id)
        .order_by(MarkerCompliance.marker_id)
    )
    return list(result.scalars().all())


async def marking_list(
    db: AsyncSession, marker_id: int, week_key: str, now: Optional[datetime] = None
) -> dict:
    """Every subject assigned to the marker with their submission state for the week."""
    week = await weeks.require_week(db, week_key)
    assignments = await directory.list_assignments(db, marker_id=marker_id, is_active=True)

    result = await db.execute(
        select(Submission)
        .where(Submission.week_id == week.id)
        .where(Submission.marker_id == marker_id)
    )
    by_subject = {s.subject_id: s for s in result.scalars().all()}

    rows = []
    for assignment in assignments:
        subject = await db.get(Person, assignment.subject_id)
        submission = by_subject.get(assignment.subject_id)
        active_set = await criteria.active_set_for(db, assignment.subject_id)
        rows.append({
            "subject_id": subject.id,
            "full_name": subject.full_name,
            "email": subject.email,
            "has_criteria_set": active_set is not None,
            "submitted": submission is not None,
            "total_score": submission.total_score if submission else None,
            "submitted_at": submission.submitted_at if submission else None,
        })

    return {
        "week_key": week.week_key,
        "is_locked": weeks.is_locked(week, now),
        "subjects": rows,
    }


async def has_pending_marking(db: AsyncSession, subject_id: int, week_key: str) -> bool:
    """True while some active marker of the subject has not submitted for the week."""
    week = await weeks.get_week(db, week_key)
    markers = set(await directory.active_markers_for_subject(db, subject_id))
    if week is None:
        return bool(markers)
    result = await db.execute(
        select(Submission.marker_id)
        .where(Submission.week_id == week.id)
        .where(Submission.subject_id == subject_id)
    )
    return bool(markers - set(result.scalars().all()))


async def weekly_details(db: AsyncSession, subject_id: int, month_key: str) -> List[dict]:
    """Per-week submissions with their item breakdown for a subject within a month."""
    try:
        week_keys = periods.friday_week_keys_for_month(month_key)
    except ValueError as e:
        raise InvalidInput(str(e))

    result = await db.execute(
        select(Week).where(Week.week_key.in_(week_keys)).order_by(Week.friday_date)
    )
    details = []
    for week in result.scalars().all():
        subs = await db.execute(
            select(Submission)
            .where(Submission.week_id == week.id)
            .where(Submission.subject_id == subject_id)
            .order_by(Submission.marker_id)
        )
        weekly = await db.execute(
            select(WeeklyResult)
            .where(WeeklyResult.week_id == week.id)
            .where(WeeklyResult.subject_id == subject_id)
        )
        details.append({
            "week_key": week.week_key,
            "label": periods.week_label(week.week_key),
            "weekly_result": weekly.scalar_one_or_none(),
            "submissions": list(subs.scalars().all()),
        })
    return details
