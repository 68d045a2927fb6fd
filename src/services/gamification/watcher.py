import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, NamedTuple, Optional

from src.exceptions import DatastoreError
from src.repositories.gamification import GamificationRepository
from src.schemas.gamification import EvaluationResult
from src.services.gamification.engine import BadgeEngine

logger = logging.getLogger(__name__)


class MetricsSnapshot(NamedTuple):
    points: int
    current_streak: int
    badge_count: int


class MetricsWatcher:
    """Triggers badge evaluation from polling ticks and pushed metric changes.

    Poll and push triggers are not coordinated with each other; overlapping
    evaluations are expected and resolved by the idempotent grant.
    """

    def __init__(self, engine: BadgeEngine, interval_seconds: float = 2.0):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._last_seen: Dict[str, MetricsSnapshot] = {}

    def _read_snapshot(self, user_id: str) -> Optional[MetricsSnapshot]:
        with self.engine.session_factory() as session:
            repo = GamificationRepository(session)
            metrics = repo.get_metrics(user_id)
            if metrics is None:
                return None
            return MetricsSnapshot(
                points=metrics.points,
                current_streak=metrics.current_streak,
                badge_count=repo.count_earned_badges(user_id),
            )

    def _read_all_snapshots(self) -> Dict[str, MetricsSnapshot]:
        with self.engine.session_factory() as session:
            rows = GamificationRepository(session).get_metric_snapshots()
        return {user_id: MetricsSnapshot(*values) for user_id, *values in rows}

    def _record(self, user_id: str, snapshot: MetricsSnapshot) -> bool:
        """Remember ``snapshot``; True when it differs from the last one seen."""
        if self._last_seen.get(user_id) == snapshot:
            return False
        self._last_seen[user_id] = snapshot
        return True

    async def poll(self, user_id: str) -> Optional[EvaluationResult]:
        """Evaluate when points, streak or badge count moved since the last tick."""
        loop = asyncio.get_running_loop()
        try:
            snapshot = await loop.run_in_executor(None, self._read_snapshot, user_id)
        except DatastoreError as e:
            logger.error(f"Metrics poll failed for {user_id}: {e}")
            return None

        if snapshot is None or not self._record(user_id, snapshot):
            return None
        return await self.engine.evaluate(user_id)

    async def poll_all(self) -> Dict[str, EvaluationResult]:
        """One tick over every user with metrics; only changed users are evaluated."""
        loop = asyncio.get_running_loop()
        try:
            snapshots = await loop.run_in_executor(None, self._read_all_snapshots)
        except DatastoreError as e:
            logger.error(f"Metrics sweep failed: {e}")
            return {}

        for user_id in set(self._last_seen) - set(snapshots):
            del self._last_seen[user_id]

        changed = [user_id for user_id, snapshot in snapshots.items() if self._record(user_id, snapshot)]
        results = await asyncio.gather(*(self.engine.evaluate(user_id) for user_id in changed))
        return dict(zip(changed, results))

    async def on_metrics_changed(self, user_id: str, payload: Mapping[str, Any]) -> Optional[EvaluationResult]:
        """Push trigger: a metrics row changed; only rows for ``user_id`` count."""
        if payload.get("user_id") != user_id:
            return None
        return await self.engine.evaluate(user_id)

    async def watch(self, user_id: str, stop: asyncio.Event) -> None:
        """Poll one user until ``stop`` is set."""
        logger.info(f"Watching metrics for {user_id} every {self.interval_seconds}s")
        try:
            await self._every_interval(lambda: self.poll(user_id), stop)
        finally:
            self._last_seen.pop(user_id, None)

    async def watch_all(self, stop: asyncio.Event) -> None:
        """Sweep every user until ``stop`` is set; run from the app lifespan."""
        logger.info(f"Watching metrics for all users every {self.interval_seconds}s")
        try:
            await self._every_interval(self._sweep, stop)
        finally:
            self._last_seen.clear()

    async def _sweep(self) -> None:
        try:
            await self.poll_all()
        except Exception:
            logger.exception("Badge sweep failed, retrying next tick")

    async def _every_interval(self, tick: Callable[[], Awaitable[Any]], stop: asyncio.Event) -> None:
        while not stop.is_set():
            await tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue
