# hrm/models/fund.py
from sqlalchemy import (
    Column, Integer, Float, String, Text, DateTime, ForeignKey, UniqueConstraint, func
)
from hrm.database import Base
from hrm.models.enums import FundStatus

class FundLogEntry(Base):
    __tablename__ = "hrm_fund_logs"

    id = Column(Integer, primary_key=True, index=True)
    monthly_result_id = Column(Integer, ForeignKey("hrm_monthly_results.id"), nullable=False)
    month_id = Column(Integer, ForeignKey("hrm_months.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    entry_type = Column(String, nullable=False)  # FINE, BONUS
    status = Column(String, nullable=False, default=FundStatus.DUE.value)  # DUE, COLLECTED, PAID
    expected_amount = Column(Float, nullable=False, default=0)
    actual_amount = Column(Float, nullable=True)
    note = Column(Text, nullable=True)
    marked_by_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=True)
    marked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("monthly_result_id", "entry_type", name="uq_fund_log_result_type"),
    )
