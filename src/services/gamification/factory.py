from src.config import get_settings
from src.services.gamification.engine import BadgeEngine, SessionFactory
from src.services.gamification.events import BadgeEventBus
from src.services.gamification.watcher import MetricsWatcher


def make_badge_engine(session_factory: SessionFactory, event_bus: BadgeEventBus) -> BadgeEngine:
    """Build a badge engine that opens one datastore session per evaluation."""
    settings = get_settings()
    return BadgeEngine(
        session_factory=session_factory,
        event_bus=event_bus,
        leaderboard_size=settings.leaderboard_size,
    )


def make_metrics_watcher(engine: BadgeEngine) -> MetricsWatcher:
    settings = get_settings()
    return MetricsWatcher(engine=engine, interval_seconds=settings.badge_poll_interval_seconds)
