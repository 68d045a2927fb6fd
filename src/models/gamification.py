import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from src.db.interfaces.postgresql import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


class Gamification(Base):
    """Per-user metrics record; written by the activity surfaces, read by the badge engine."""

    __tablename__ = "gamification"

    user_id = Column(String(64), primary_key=True)
    points = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    first_login_completed = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))


class Badge(Base):
    __tablename__ = "badges"

    id = Column(String(64), primary_key=True, default=_uuid_str)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(64), nullable=False, default="Trophy")
    rarity = Column(String(16), nullable=False, default="common")
    requirement_type = Column(String(32), nullable=False)
    requirement_value = Column(Integer, nullable=False, default=0)


class UserBadge(Base):
    __tablename__ = "user_badges"

    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_id_badge_id"),
    )

    id = Column(String(64), primary_key=True, default=_uuid_str)
    user_id = Column(String(64), nullable=False, index=True)
    badge_id = Column(String(64), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    earned_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
