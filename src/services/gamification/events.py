import logging
from typing import Callable, List

from src.schemas.gamification import BadgeUnlockedEvent

logger = logging.getLogger(__name__)

BADGE_UNLOCKED = "badge-unlocked"

BadgeListener = Callable[[BadgeUnlockedEvent], None]


class BadgeEventBus:
    """Observer registry for the "badge-unlocked" topic.

    One bus lives for the lifetime of the application (created in the app
    lifespan). Delivery is best-effort and synchronous: listeners registered
    after an event was published never see it, and a failing listener does
    not stop the others.
    """

    topic = BADGE_UNLOCKED

    def __init__(self):
        self._listeners: List[BadgeListener] = []

    def subscribe(self, listener: BadgeListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: BadgeUnlockedEvent) -> int:
        """Deliver to every current listener; returns how many received it."""
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(event)
                delivered += 1
            except Exception as e:
                logger.error(f"{self.topic} listener failed for badge {event.id}: {e}")
        return delivered

    def __len__(self) -> int:
        return len(self._listeners)
