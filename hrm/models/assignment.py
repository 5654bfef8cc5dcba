# hrm/models/assignment.py
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from hrm.database import Base

class Assignment(Base):
    __tablename__ = "hrm_assignments"

    id = Column(Integer, primary_key=True, index=True)
    marker_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)   # Who marks
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)  # Who is marked
    is_active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("marker_id", "subject_id", name="uq_assignment_marker_subject"),
    )
