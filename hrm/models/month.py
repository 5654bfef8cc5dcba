# hrm/models/month.py
from sqlalchemy import (
    Column, Integer, Float, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, func
)
from hrm.database import Base
from hrm.models.enums import PeriodStatus

class Month(Base):
    __tablename__ = "hrm_months"

    id = Column(Integer, primary_key=True, index=True)
    month_key = Column(String(7), unique=True, nullable=False)  # YYYY-MM
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=PeriodStatus.OPEN.value)  # OPEN, LOCKED
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class MonthlyResult(Base):
    __tablename__ = "hrm_monthly_results"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    month_id = Column(Integer, ForeignKey("hrm_months.id"), nullable=False)
    monthly_score = Column(Float, nullable=False)
    tier = Column(String, nullable=False)         # BONUS, APPRECIATION, IMPROVEMENT, FINE
    action_type = Column(String, nullable=False)  # BONUS, APPRECIATION, SHOW_CAUSE, FINE
    base_fine = Column(Float, nullable=False, default=0)
    month_fine_count = Column(Integer, nullable=False, default=0)  # 0 or 1
    final_fine = Column(Float, nullable=False, default=0)
    gift_type = Column(String, nullable=True)
    gift_amount = Column(Float, nullable=False, default=0)
    weeks_count_used = Column(Integer, nullable=False, default=0)
    expected_weeks_count = Column(Integer, nullable=False, default=0)
    is_complete_month = Column(Boolean, nullable=False, default=False)
    computed_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("subject_id", "month_id", name="uq_monthly_result_subject_month"),
    )
