import logging

from fastapi import APIRouter, HTTPException

from src.dependencies import NotificationRepositoryDep
from src.exceptions import DatastoreError
from src.schemas.api.notifications import SendNotificationRequest, SendNotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.post("/send", response_model=SendNotificationResponse)
def send_notification(body: SendNotificationRequest, repo: NotificationRepositoryDep):
    """Store a notification for another user."""
    try:
        repo.create(
            user_id=body.to_user_id,
            message=body.message,
            type=body.type or "general",
            data=body.data,
        )
    except DatastoreError as e:
        logger.error(f"Notification send failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to send notification")
    return SendNotificationResponse()
