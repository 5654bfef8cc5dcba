# hrm/models/submission.py
from sqlalchemy import (
    Column, Integer, Float, Text, String, Boolean, DateTime, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from hrm.database import Base
from hrm.models.enums import ComplianceStatus

class Submission(Base):
    __tablename__ = "hrm_submissions"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("hrm_weeks.id"), nullable=False)
    marker_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    # Criteria-set version that scored this submission
    criteria_set_id = Column(Integer, ForeignKey("hrm_criteria_sets.id"), nullable=False)
    total_score = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "SubmissionItem",
        order_by="SubmissionItem.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("week_id", "marker_id", "subject_id", name="uq_submission_week_marker_subject"),
    )


class SubmissionItem(Base):
    __tablename__ = "hrm_submission_items"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("hrm_submissions.id"), nullable=False)
    criterion_id = Column(Integer, ForeignKey("hrm_criteria.id"), nullable=False)
    score_raw = Column(Float, nullable=False)


class WeeklyResult(Base):
    __tablename__ = "hrm_weekly_results"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("hrm_weeks.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    weekly_avg_score = Column(Float, nullable=False, default=0.0)
    expected_markers_count = Column(Integer, nullable=False, default=0)
    submitted_markers_count = Column(Integer, nullable=False, default=0)
    is_complete = Column(Boolean, nullable=False, default=False)
    computed_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("week_id", "subject_id", name="uq_weekly_result_week_subject"),
    )


class MarkerCompliance(Base):
    __tablename__ = "hrm_marker_compliance"

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("hrm_weeks.id"), nullable=False)
    marker_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    expected_count = Column(Integer, nullable=False, default=0)
    submitted_count = Column(Integer, nullable=False, default=0)
    missed_count = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default=ComplianceStatus.OK.value)  # OK, MISSED
    computed_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("week_id", "marker_id", name="uq_marker_compliance_week_marker"),
    )
