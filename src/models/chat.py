import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from src.db.interfaces.postgresql import Base


class AIChatMessage(Base):
    __tablename__ = "ai_chats"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    chat_id = Column(String(64), nullable=False, index=True)
    sender = Column(String(16), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
