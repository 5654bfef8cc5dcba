from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from hrm.database import get_db
from hrm.core.auth import get_current_user, require_super_admin
from hrm.schemas.notification import (
    NotificationResponse, MarkReadRequest, DeliveryRecord, EmailLogResponse,
    PendingMarkingResponse, MarksheetLoggedResponse
)
from hrm.services import notifications, submissions

router = APIRouter(prefix="/hrm/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_my_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await notifications.list_notifications(db, current_user.id, unread_only=unread_only)


@router.post("/mark-read")
async def mark_notifications_read(
    request: MarkReadRequest,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    count = await notifications.mark_read(db, current_user.id, request.notification_ids)
    return {"marked": count}


# Queries and records used by the external email relay

@router.get("/relay/pending-marking", response_model=PendingMarkingResponse)
async def check_pending_marking(
    subject_id: int,
    week_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    pending = await submissions.has_pending_marking(db, subject_id, week_key)
    return PendingMarkingResponse(subject_id=subject_id, week_key=week_key, pending=pending)


@router.get("/relay/marksheet-logged", response_model=MarksheetLoggedResponse)
async def check_marksheet_logged(
    subject_id: int,
    month_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    sent = await notifications.marksheet_logged(db, subject_id, month_key)
    return MarksheetLoggedResponse(subject_id=subject_id, month_key=month_key, already_sent=sent)


@router.post("/relay/deliveries", response_model=EmailLogResponse, status_code=201)
async def record_delivery(
    record: DeliveryRecord,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await notifications.record_delivery(
        db,
        subject_id=record.subject_id,
        month_key=record.month_key,
        email_type=record.email_type.value,
        delivery_status=record.delivery_status.value,
        recipient_email=record.recipient_email,
        subject_line=record.subject_line,
        error_message=record.error_message,
        sent_by_id=admin.id,
    )


@router.get("/relay/email-logs", response_model=List[EmailLogResponse])
async def list_email_logs(
    subject_id: int,
    month_key: str,
    db: AsyncSession = Depends(get_db),
    admin = Depends(require_super_admin)
):
    return await notifications.list_email_logs(db, subject_id, month_key)
