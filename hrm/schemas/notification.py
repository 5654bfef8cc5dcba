from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from hrm.models.enums import DeliveryStatus, EmailType

class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    link: Optional[str]
    is_read: bool
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class MarkReadRequest(BaseModel):
    notification_ids: Optional[List[int]] = None  # None = all

class DeliveryRecord(BaseModel):
    subject_id: int
    month_key: str
    email_type: EmailType = EmailType.MARKSHEET
    delivery_status: DeliveryStatus
    recipient_email: Optional[str] = None
    subject_line: Optional[str] = None
    error_message: Optional[str] = None

class EmailLogResponse(BaseModel):
    id: int
    subject_id: int
    month_id: int
    email_type: str
    delivery_status: str
    recipient_email: Optional[str]
    subject_line: Optional[str]
    error_message: Optional[str]
    sent_by_id: Optional[int]
    sent_at: Optional[datetime]

    model_config = {"from_attributes": True}

class PendingMarkingResponse(BaseModel):
    subject_id: int
    week_key: str
    pending: bool

class MarksheetLoggedResponse(BaseModel):
    subject_id: int
    month_key: str
    already_sent: bool
