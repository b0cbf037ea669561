from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from learning_portal.models.db import get_db
from learning_portal.models.schemas import CurrentUser, NotificationList
from learning_portal.routers.auth import require_user
from learning_portal.services.data_access import SqlPortalDataSource
from learning_portal.services.progress import count_unread, format_time_ago

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    items = SqlPortalDataSource(db).fetch_notifications(user.id)
    now = datetime.now(timezone.utc)
    return {
        "unread_count": count_unread(items),
        "notifications": [
            {**n.model_dump(), "relative_time": format_time_ago(n.created_at, now)}
            for n in items
        ],
    }


@router.post("/read-all")
def mark_all_read(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    return {"ok": True, "updated": SqlPortalDataSource(db).mark_all_notifications_read(user.id)}


@router.post("/{notification_id}/read")
def mark_read(notification_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    if not SqlPortalDataSource(db).mark_notification_read(notification_id, guardian_id=user.id):
        raise HTTPException(status_code=404, detail="notification not found")
    return {"ok": True}


@router.delete("/{notification_id}")
def delete_notification(notification_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    if not SqlPortalDataSource(db).delete_notification(notification_id, guardian_id=user.id):
        raise HTTPException(status_code=404, detail="notification not found")
    return {"ok": True}
