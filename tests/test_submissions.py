import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from conftest import FRIDAY_NOON, NEXT_MONDAY, WEEK, raw_scores
from hrm.core.errors import Conflict, Forbidden, InvalidInput, NotFound
from hrm.models.submission import Submission, WeeklyResult
from hrm.database import is_unique_violation
from hrm.services import criteria, directory, scoring, submissions, weeks


async def submit(db, org, marker, *values, week_key=WEEK, now=FRIDAY_NOON, comment=None):
    return await submissions.submit_scores(
        db, week_key, marker.id, org.subject.id, raw_scores(org, *values), comment=comment, now=now
    )


async def weekly_result(db, org, week_key=WEEK):
    week = await weeks.require_week(db, week_key)
    result = await db.execute(
        select(WeeklyResult)
        .where(WeeklyResult.week_id == week.id)
        .where(WeeklyResult.subject_id == org.subject.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def test_submission_scores_and_pins_criteria_set(db, org):
    submission = await submit(db, org, org.marker, 8, 6, 9, comment="solid week")

    assert submission.total_score == 77.00
    assert submission.criteria_set_id == org.criteria_set.id
    assert submission.comment == "solid week"
    assert sorted(item.score_raw for item in submission.items) == [6, 8, 9]


async def test_weekly_result_tracks_markers(db, org):
    await submit(db, org, org.marker, 8, 6, 9)
    weekly = await weekly_result(db, org)
    assert weekly.weekly_avg_score == 77.00
    assert weekly.submitted_markers_count == 1
    assert weekly.expected_markers_count == 2
    assert not weekly.is_complete

    await submit(db, org, org.marker2, 10, 10, 10)
    weekly = await weekly_result(db, org)
    assert weekly.weekly_avg_score == 88.50
    assert weekly.submitted_markers_count == 2
    assert weekly.is_complete


async def test_resubmission_replaces_previous_scores(db, org):
    first = await submit(db, org, org.marker, 8, 6, 9)
    second = await submit(db, org, org.marker, 5, 5, 5, comment="revised")

    assert second.id == first.id
    assert second.total_score == 50.00
    assert second.comment == "revised"
    assert len(second.items) == 3

    count = await db.execute(select(func.count(Submission.id)))
    assert count.scalar_one() == 1
    assert (await weekly_result(db, org)).weekly_avg_score == 50.00


async def test_locked_week_rejects_submission(db, org):
    with pytest.raises(Forbidden):
        await submit(db, org, org.marker, 8, 6, 9, now=NEXT_MONDAY)


async def test_unlocked_week_accepts_late_submission(db, org):
    week = await weeks.unlock_week(db, WEEK, unlocked_by_id=org.super_admin.id)
    assert week.unlocked_at is not None
    assert not weeks.is_locked(week, NEXT_MONDAY)

    submission = await submit(db, org, org.marker, 8, 6, 9, now=NEXT_MONDAY)
    assert submission.total_score == 77.00


async def test_missing_week(db, org):
    with pytest.raises(NotFound):
        await submit(db, org, org.marker, 8, 6, 9, week_key="2025-06-20")


async def test_inactive_assignment_is_forbidden(db, org):
    assignment = (await directory.list_assignments(db, marker_id=org.marker.id))[0]
    await directory.set_assignment_active(db, assignment.id, False)
    with pytest.raises(Forbidden):
        await submit(db, org, org.marker, 8, 6, 9)


async def test_inactive_subject_is_forbidden(db, org):
    await directory.set_person_active(db, org.subject.id, False)
    with pytest.raises(Forbidden):
        await submit(db, org, org.marker, 8, 6, 9)


async def test_unassigned_marker_is_forbidden(db, org):
    with pytest.raises(Forbidden):
        await submissions.submit_scores(
            db, WEEK, org.super_admin.id, org.subject.id, raw_scores(org, 8, 6, 9), now=FRIDAY_NOON
        )


async def test_invalid_scores_report_every_error(db, org):
    with pytest.raises(InvalidInput) as exc:
        await submit(db, org, org.marker, 11, 6)
    assert len(exc.value.errors) == 2

    count = await db.execute(select(func.count(Submission.id)))
    assert count.scalar_one() == 0


async def test_old_submission_keeps_its_criteria_set(db, org):
    submission = await submit(db, org, org.marker, 8, 6, 9)
    quality, delivery, _ = org.criteria
    await criteria.replace_criteria_set(
        db, org.subject.id,
        [{"criterion_id": quality.id, "weight": 50}, {"criterion_id": delivery.id, "weight": 50}],
    )

    stored = await submissions.get_submission(db, submission.id)
    assert stored.criteria_set_id == org.criteria_set.id
    assert stored.total_score == 77.00


async def test_compute_week_records_compliance(db, org):
    await submit(db, org, org.marker, 8, 6, 9)
    counts = await submissions.compute_week(db, WEEK)
    assert counts == {"subjects_computed": 1, "markers_computed": 2}

    compliance = {c.marker_id: c for c in await submissions.list_compliance(db, WEEK)}
    assert compliance[org.marker.id].status == "OK"
    assert compliance[org.marker2.id].status == "MISSED"
    assert compliance[org.marker2.id].missed_count == 1

    # recomputing is idempotent
    await submissions.compute_week(db, WEEK)
    assert len(await submissions.list_compliance(db, WEEK)) == 2


async def test_marking_list(db, org):
    await submit(db, org, org.marker, 8, 6, 9)
    listing = await submissions.marking_list(db, org.marker.id, WEEK, now=FRIDAY_NOON)
    assert listing["week_key"] == WEEK
    assert not listing["is_locked"]
    [row] = listing["subjects"]
    assert row["subject_id"] == org.subject.id
    assert row["submitted"]
    assert row["total_score"] == 77.00

    pending = await submissions.marking_list(db, org.marker2.id, WEEK, now=NEXT_MONDAY)
    assert pending["is_locked"]
    assert not pending["subjects"][0]["submitted"]


async def test_pending_marking(db, org):
    assert await submissions.has_pending_marking(db, org.subject.id, WEEK)
    await submit(db, org, org.marker, 8, 6, 9)
    assert await submissions.has_pending_marking(db, org.subject.id, WEEK)
    await submit(db, org, org.marker2, 8, 6, 9)
    assert not await submissions.has_pending_marking(db, org.subject.id, WEEK)


async def test_weekly_details(db, org):
    await submit(db, org, org.marker, 8, 6, 9)
    [detail] = await submissions.weekly_details(db, org.subject.id, "2025-06")
    assert detail["week_key"] == WEEK
    assert detail["label"] == "Week-2"
    assert detail["weekly_result"].weekly_avg_score == 77.00
    assert [s.marker_id for s in detail["submissions"]] == [org.marker.id]


async def test_assignments_cannot_be_deleted_once_used(db, org):
    await submit(db, org, org.marker, 8, 6, 9)
    assignment = (await directory.list_assignments(db, marker_id=org.marker.id))[0]
    with pytest.raises(Conflict):
        await directory.delete_assignment(db, assignment.id)

    unused = (await directory.list_assignments(db, marker_id=org.marker2.id))[0]
    await directory.delete_assignment(db, unused.id)
    assert await directory.active_markers_for_subject(db, org.subject.id) == [org.marker.id]


async def test_non_finite_scores_are_rejected(db, org):
    with pytest.raises(InvalidInput) as exc:
        await submit(db, org, org.marker, float("nan"), 6, 9)
    assert exc.value.errors == [f"Score for criterion {org.criteria[0].id} must be a finite number"]

    count = await db.execute(select(func.count(Submission.id)))
    assert count.scalar_one() == 0


async def test_non_unique_integrity_errors_are_not_retried(db, org, monkeypatch):
    # a NULL total trips NOT NULL, which is not a concurrent-write race
    monkeypatch.setattr(scoring, "score", lambda items, raw: None)
    with pytest.raises(IntegrityError):
        await submit(db, org, org.marker, 8, 6, 9)

    count = await db.execute(select(func.count(Submission.id)))
    assert count.scalar_one() == 0


def test_unique_violation_detection():
    def integrity_error(message):
        return IntegrityError("INSERT", {}, Exception(message))

    sqlite_dup = integrity_error(
        "UNIQUE constraint failed: hrm_submissions.week_id, hrm_submissions.marker_id, hrm_submissions.subject_id"
    )
    postgres_dup = integrity_error(
        'duplicate key value violates unique constraint "uq_submission_week_marker_subject"'
    )
    not_null = integrity_error("NOT NULL constraint failed: hrm_submissions.total_score")
    other_table = integrity_error("UNIQUE constraint failed: hrm_people.email")

    assert is_unique_violation(sqlite_dup, *submissions.SUBMISSION_KEYS)
    assert is_unique_violation(postgres_dup, *submissions.SUBMISSION_KEYS)
    assert not is_unique_violation(not_null, *submissions.SUBMISSION_KEYS)
    assert not is_unique_violation(other_table, *submissions.SUBMISSION_KEYS)
