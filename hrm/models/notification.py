# hrm/models/notification.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from hrm.database import Base

class Notification(Base):
    __tablename__ = "hrm_notifications"

    id = Column(Integer, primary_key=True, index=True)
    person_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EmailLog(Base):
    __tablename__ = "hrm_email_logs"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=False)
    month_id = Column(Integer, ForeignKey("hrm_months.id"), nullable=False)
    email_type = Column(String, nullable=False)       # MARKSHEET, REMINDER
    delivery_status = Column(String, nullable=False)  # SENT, FAILED
    recipient_email = Column(String, nullable=True)
    subject_line = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)
    sent_by_id = Column(Integer, ForeignKey("hrm_people.id"), nullable=True)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
