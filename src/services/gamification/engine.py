import asyncio
import logging
from typing import Callable, ContextManager, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from src.exceptions import DatastoreError
from src.repositories.gamification import GamificationRepository
from src.repositories.notifications import NotificationRepository
from src.schemas.gamification import (
    BADGE_ICONS,
    DEFAULT_BADGE_DESCRIPTION,
    DEFAULT_BADGE_ICON,
    BadgeDefinition,
    BadgeUnlockedEvent,
    EvaluationResult,
    UserStanding,
)
from src.services.gamification.events import BadgeEventBus
from src.services.gamification.requirements import FirstLoginRequirement, build_requirement

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_SIZE = 10

SessionFactory = Callable[[], ContextManager[Session]]


def unlocked_event(badge: BadgeDefinition) -> BadgeUnlockedEvent:
    return BadgeUnlockedEvent(
        id=badge.id,
        name=badge.name,
        description=badge.description or DEFAULT_BADGE_DESCRIPTION,
        icon=badge.icon if badge.icon in BADGE_ICONS else DEFAULT_BADGE_ICON,
        rarity=badge.rarity,
    )


class BadgeEngine:
    """Evaluates badge rules for a user and grants what is newly unlocked.

    Evaluations for the same user may overlap (initial load, poll tick, push
    notification). The only guard is the unique (user_id, badge_id) pair in
    the datastore: a grant that finds the pair already present is skipped.

    Each evaluation opens its own session from ``session_factory`` and runs
    its datastore work on the default executor; unlock events are published
    back on the event loop.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        event_bus: BadgeEventBus,
        leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE,
    ):
        self.session_factory = session_factory
        self.event_bus = event_bus
        # top_10 needs at least ten ranked ids
        self.leaderboard_size = max(leaderboard_size, DEFAULT_LEADERBOARD_SIZE)

    def load_standing(self, repo: GamificationRepository, user_id: str) -> Optional[UserStanding]:
        metrics = repo.get_metrics(user_id)
        if metrics is None:
            return None

        top_ids = repo.get_top_user_ids(limit=self.leaderboard_size)
        index = top_ids.index(user_id) if user_id in top_ids else -1
        return UserStanding(
            points=metrics.points,
            level=metrics.level,
            current_streak=metrics.current_streak,
            first_login_completed=metrics.first_login_completed,
            leaderboard_index=index,
        )

    async def evaluate(self, user_id: str) -> EvaluationResult:
        loop = asyncio.get_running_loop()
        try:
            granted = await loop.run_in_executor(None, self.award_unlocked, user_id)
        except DatastoreError as e:
            logger.error(f"Badge evaluation aborted for {user_id}: {e}")
            return EvaluationResult(success=False)

        for badge in granted:
            self.event_bus.publish(unlocked_event(badge))

        awarded = [badge.name for badge in granted]
        if awarded:
            logger.info(f"Awarded {len(awarded)} badge(s) to {user_id}", extra={"badges": awarded})
        return EvaluationResult(success=True, newly_awarded_names=awarded)

    def award_unlocked(self, user_id: str) -> List[BadgeDefinition]:
        """Grant every unlocked badge in one session; returns the badges this call inserted.

        :raises DatastoreError: when metrics, leaderboard or definitions cannot be loaded
        """
        with self.session_factory() as session:
            repo = GamificationRepository(session)
            notifications = NotificationRepository(session)

            standing = self.load_standing(repo, user_id)
            if standing is None:
                return []
            badges = repo.list_badges()
            earned = repo.get_earned_badge_ids(user_id)

            granted = []
            for badge in badges:
                if badge.id in earned:
                    continue
                try:
                    requirement = build_requirement(badge)
                except ValidationError:
                    logger.warning(
                        f"Unknown requirement type {badge.requirement_type!r} on badge {badge.id}"
                    )
                    continue
                if not requirement.is_met(standing):
                    continue

                try:
                    inserted = repo.grant_badge(user_id, badge.id)
                except DatastoreError as e:
                    logger.error(f"Failed to award badge {badge.id} to {user_id}: {e}")
                    continue
                if not inserted:
                    logger.info(f"Badge {badge.id} already granted to {user_id}, skipping")
                    continue

                granted.append(badge)
                self._after_grant(
                    repo, notifications, user_id, badge,
                    first_login=isinstance(requirement, FirstLoginRequirement),
                )
            return granted

    @staticmethod
    def _after_grant(
        repo: GamificationRepository,
        notifications: NotificationRepository,
        user_id: str,
        badge: BadgeDefinition,
        first_login: bool,
    ) -> None:
        """Follow-up writes for a fresh grant; failures are logged, the grant stands."""
        if first_login:
            try:
                repo.mark_first_login_completed(user_id)
            except DatastoreError as e:
                logger.error(f"Failed to mark first login for {user_id}: {e}")

        try:
            notifications.create(
                user_id=user_id,
                message=f'You unlocked the "{badge.name}" badge!',
                type="badge",
                data={"badge_id": badge.id},
            )
        except DatastoreError as e:
            logger.error(f"Failed to notify {user_id} about badge {badge.id}: {e}")
