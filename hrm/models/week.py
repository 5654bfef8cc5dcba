# hrm/models/week.py
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, func
from hrm.database import Base
from hrm.models.enums import PeriodStatus

class Week(Base):
    __tablename__ = "hrm_weeks"

    id = Column(Integer, primary_key=True, index=True)
    week_key = Column(String(10), unique=True, nullable=False)  # YYYY-MM-DD of the Friday
    friday_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=PeriodStatus.OPEN.value)  # OPEN, LOCKED

    # Set when a super admin re-opens the week after its natural cutoff
    unlocked_at = Column(DateTime(timezone=True), nullable=True)
    unlocked_by_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
