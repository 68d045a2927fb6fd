from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import DatastoreError
from src.models.chat import AIChatMessage


class ChatRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_history(self, chat_id: str) -> List[AIChatMessage]:
        """All stored turns of a chat, oldest first."""
        stmt = (
            select(AIChatMessage)
            .where(AIChatMessage.chat_id == chat_id)
            .order_by(AIChatMessage.created_at.asc())
        )
        try:
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            raise DatastoreError(f"Failed to load chat history for {chat_id}: {e}") from e
