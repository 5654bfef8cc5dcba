# hrm/models/criteria.py
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from hrm.database import Base

class Criterion(Base):
    __tablename__ = "hrm_criteria"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False)  # frozen once referenced by a set item
    name = Column(String, nullable=False)
    default_scale_max = Column(Integer, nullable=False, default=10)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class CriteriaSet(Base):
    __tablename__ = "hrm_criteria_sets"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    version = Column(Integer, nullable=False)
    active_from = Column(DateTime(timezone=True), nullable=False)
    active_to = Column(DateTime(timezone=True), nullable=True)  # NULL = current set
    created_by_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "CriteriaSetItem",
        order_by="CriteriaSetItem.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("subject_id", "version", name="uq_criteria_set_subject_version"),
        # at most one current set per subject
        Index(
            "uq_criteria_set_one_active",
            "subject_id",
            unique=True,
            postgresql_where=active_to.is_(None),
            sqlite_where=active_to.is_(None),
        ),
    )


class CriteriaSetItem(Base):
    __tablename__ = "hrm_criteria_set_items"

    id = Column(Integer, primary_key=True, index=True)
    criteria_set_id = Column(Integer, ForeignKey("hrm_criteria_sets.id"), nullable=False)
    criterion_id = Column(Integer, ForeignKey("hrm_criteria.id"), nullable=False)
    weight = Column(Integer, nullable=False)     # percent
    scale_max = Column(Integer, nullable=False)  # overrides Criterion.default_scale_max

    criterion = relationship("Criterion", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("criteria_set_id", "criterion_id", name="uq_criteria_set_item"),
    )
