import logging
from typing import List, Optional, Set, Tuple

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import DatastoreError
from src.models.gamification import Badge, Gamification, UserBadge
from src.schemas.gamification import BadgeDefinition, UserMetrics

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class GamificationRepository:
    """Data access for metrics, badge definitions and earned badges."""

    def __init__(self, session: Session):
        self.session = session

    def _fail(self, action: str, error: SQLAlchemyError) -> DatastoreError:
        self.session.rollback()
        return DatastoreError(f"Failed to {action}: {error}")

    def get_metrics(self, user_id: str) -> Optional[UserMetrics]:
        try:
            row = self.session.get(Gamification, user_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._fail(f"load metrics for {user_id}", e) from e
        return UserMetrics.model_validate(row) if row else None

    def get_top_user_ids(self, limit: int = 10) -> List[str]:
        """User ids ordered by points, highest first."""
        stmt = (
            select(Gamification.user_id)
            .order_by(Gamification.points.desc(), Gamification.user_id.asc())
            .limit(limit)
        )
        try:
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            raise self._fail("load leaderboard", e) from e

    def list_badges(self) -> List[BadgeDefinition]:
        try:
            rows = self.session.scalars(select(Badge)).all()
        except SQLAlchemyError as e:
            raise self._fail("load badge definitions", e) from e
        definitions = []
        for row in rows:
            try:
                definitions.append(BadgeDefinition.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed badge definition {row.id}: {e.error_count()} errors")
        return definitions

    def get_earned_badge_ids(self, user_id: str) -> Set[str]:
        stmt = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
        try:
            return set(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            raise self._fail(f"load earned badges for {user_id}", e) from e

    def count_earned_badges(self, user_id: str) -> int:
        stmt = select(func.count(UserBadge.id)).where(UserBadge.user_id == user_id)
        try:
            return self.session.scalar(stmt) or 0
        except SQLAlchemyError as e:
            raise self._fail(f"count earned badges for {user_id}", e) from e

    def get_metric_snapshots(self) -> List[Tuple[str, int, int, int]]:
        """(user_id, points, current_streak, earned badge count) for every user with metrics."""
        earned = (
            select(UserBadge.user_id, func.count(UserBadge.id).label("badge_count"))
            .group_by(UserBadge.user_id)
            .subquery()
        )
        stmt = select(
            Gamification.user_id,
            Gamification.points,
            Gamification.current_streak,
            func.coalesce(earned.c.badge_count, 0),
        ).outerjoin(earned, earned.c.user_id == Gamification.user_id)
        try:
            return [tuple(row) for row in self.session.execute(stmt)]
        except SQLAlchemyError as e:
            raise self._fail("load metric snapshots", e) from e

    def grant_badge(self, user_id: str, badge_id: str) -> bool:
        """Insert the (user, badge) pair unless it already exists.

        Returns True when this call created the row, False when the pair was
        already present (typically granted by an overlapping evaluation).
        """
        values = {"user_id": user_id, "badge_id": badge_id}
        insert = _INSERT_BY_DIALECT.get(self.session.get_bind().dialect.name)
        try:
            if insert is not None:
                stmt = insert(UserBadge).values(**values).on_conflict_do_nothing(
                    index_elements=["user_id", "badge_id"]
                )
                inserted = self.session.execute(stmt).rowcount == 1
            else:
                self.session.add(UserBadge(**values))
                self.session.flush()
                inserted = True
            self.session.commit()
            return inserted
        except IntegrityError:
            self.session.rollback()
            logger.info(f"Badge {badge_id} already granted to {user_id}")
            return False
        except SQLAlchemyError as e:
            raise self._fail(f"grant badge {badge_id} to {user_id}", e) from e

    def mark_first_login_completed(self, user_id: str) -> None:
        stmt = (
            update(Gamification)
            .where(Gamification.user_id == user_id)
            .values(first_login_completed=True)
        )
        try:
            self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail(f"mark first login for {user_id}", e) from e
