"""API routes for in-app notifications."""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.dependencies import get_db_session, raise_for_result
from api.models import NotificationCreate, NotificationResponse
from api.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def get_notifications(
    limit: int = Query(20, ge=1, le=200), db: Session = Depends(get_db_session)
) -> list[NotificationResponse]:
    """Newest undismissed notifications."""
    return NotificationService.get_notifications(db, limit=limit)


@router.get("/unread-count")
async def get_unread_count(db: Session = Depends(get_db_session)) -> dict[str, int]:
    return {"count": NotificationService.get_unread_count(db)}


@router.post("/", status_code=201)
async def create_notification(data: NotificationCreate, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    result = raise_for_result(NotificationService.create_notification(db, data))
    return {"success": True, "id": result.id}


@router.post("/read-all")
async def mark_all_as_read(db: Session = Depends(get_db_session)) -> dict[str, Any]:
    result = raise_for_result(NotificationService.mark_all_as_read(db))
    return {"success": True, "updated": result.count}


@router.post("/{notification_id}/read")
async def mark_as_read(notification_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(NotificationService.mark_as_read(db, notification_id), "Notification not found")
    return {"success": True}


@router.post("/{notification_id}/dismiss")
async def dismiss_notification(notification_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(NotificationService.dismiss(db, notification_id), "Notification not found")
    return {"success": True}
