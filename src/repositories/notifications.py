from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import DatastoreError
from src.models.notification import Notification


class NotificationRepository:
    """Durable per-user notifications."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: str,
        message: str,
        type: str = "general",
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            message=message,
            type=type,
            data=data or {},
            read=False,
        )
        try:
            self.session.add(notification)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatastoreError(f"Failed to store notification for {user_id}: {e}") from e
        return notification
