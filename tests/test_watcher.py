import asyncio

import pytest

from src.exceptions import DatastoreError
from src.models import Gamification
from src.repositories.gamification import GamificationRepository
from src.services.gamification.engine import BadgeEngine
from src.services.gamification.events import BadgeEventBus
from src.services.gamification.factory import make_badge_engine, make_metrics_watcher
from src.services.gamification.watcher import MetricsSnapshot, MetricsWatcher


@pytest.fixture
def watcher(session_factory):
    engine = BadgeEngine(session_factory=session_factory, event_bus=BadgeEventBus())
    return MetricsWatcher(engine=engine, interval_seconds=0.01)


def set_points(session, user_id, points):
    session.get(Gamification, user_id).points = points
    session.commit()


def earned_ids(session, user_id):
    return GamificationRepository(session).get_earned_badge_ids(user_id)


async def test_first_poll_evaluates(watcher, add_user, add_badge):
    add_user("u1", points=150)
    add_badge("b100", "points", 100)

    result = await watcher.poll("u1")
    assert result.newly_awarded_names == ["b100"]


async def test_poll_without_changes_skips(watcher, add_user):
    add_user("u1", points=50)
    await watcher.poll("u1")
    assert await watcher.poll("u1") is None


async def test_poll_after_points_change_evaluates(watcher, session, add_user, add_badge):
    add_user("u1", points=50)
    add_badge("b100", "points", 100)

    assert (await watcher.poll("u1")).newly_awarded_names == []
    set_points(session, "u1", 120)
    assert (await watcher.poll("u1")).newly_awarded_names == ["b100"]


async def test_poll_unknown_user(watcher):
    assert await watcher.poll("ghost") is None


async def test_poll_read_failure_returns_none(watcher, add_user, monkeypatch):
    add_user("u1", points=150)

    def broken(self, user_id):
        raise DatastoreError("connection reset")

    monkeypatch.setattr(GamificationRepository, "get_metrics", broken)
    assert await watcher.poll("u1") is None


async def test_push_trigger_filters_by_user(watcher, add_user, add_badge):
    add_user("u1", points=150)
    add_badge("b100", "points", 100)

    assert await watcher.on_metrics_changed("u1", {"user_id": "someone-else", "points": 999}) is None
    result = await watcher.on_metrics_changed("u1", {"user_id": "u1", "points": 150})
    assert result.newly_awarded_names == ["b100"]


async def test_poll_and_push_overlap_grant_once(watcher, session, add_user, add_badge):
    add_user("u1", points=150)
    add_badge("b100", "points", 100)

    results = await asyncio.gather(
        watcher.poll("u1"),
        watcher.on_metrics_changed("u1", {"user_id": "u1"}),
    )
    assert sum(len(r.newly_awarded_names) for r in results) == 1
    assert earned_ids(session, "u1") == {"b100"}


async def test_poll_all_evaluates_changed_users_only(watcher, session, add_user, add_badge):
    add_user("u1", points=150)
    add_user("u2", points=20)
    add_badge("b100", "points", 100)

    first = await watcher.poll_all()
    assert {user_id: r.newly_awarded_names for user_id, r in first.items()} == {"u1": ["b100"], "u2": []}

    # u1's badge count moved, so it is looked at once more; u2 is unchanged
    second = await watcher.poll_all()
    assert set(second) == {"u1"}
    assert second["u1"].newly_awarded_names == []

    set_points(session, "u2", 300)
    third = await watcher.poll_all()
    assert set(third) == {"u2"}
    assert third["u2"].newly_awarded_names == ["b100"]


async def test_poll_all_forgets_removed_users(watcher, session, add_user):
    add_user("u1", points=10)
    await watcher.poll_all()
    session.delete(session.get(Gamification, "u1"))
    session.commit()

    assert await watcher.poll_all() == {}
    assert watcher._last_seen == {}


async def test_watch_stops_and_forgets_user(watcher, session, add_user, add_badge):
    add_user("u1", points=150)
    add_badge("b100", "points", 100)
    stop = asyncio.Event()

    task = asyncio.create_task(watcher.watch("u1", stop))
    await asyncio.sleep(0.1)
    assert "u1" in watcher._last_seen
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert earned_ids(session, "u1") == {"b100"}
    assert "u1" not in watcher._last_seen


async def test_watch_all_sweeps_until_stopped(watcher, session, add_user, add_badge):
    add_user("u1", points=150)
    add_user("u2", points=250)
    add_badge("b200", "points", 200)
    stop = asyncio.Event()

    task = asyncio.create_task(watcher.watch_all(stop))
    await asyncio.sleep(0.1)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert earned_ids(session, "u1") == set()
    assert earned_ids(session, "u2") == {"b200"}
    assert watcher._last_seen == {}


def test_metric_snapshots_include_badge_counts(session, add_user, add_badge):
    add_user("u1", points=150, current_streak=3)
    add_user("u2", points=5)
    add_badge("b1", "points", 0)
    GamificationRepository(session).grant_badge("u1", "b1")

    rows = GamificationRepository(session).get_metric_snapshots()
    snapshots = {user_id: MetricsSnapshot(*values) for user_id, *values in rows}
    assert snapshots == {"u1": MetricsSnapshot(150, 3, 1), "u2": MetricsSnapshot(5, 0, 0)}


def test_factories_use_settings(session_factory):
    bus = BadgeEventBus()
    engine = make_badge_engine(session_factory, bus)
    watcher = make_metrics_watcher(engine)

    assert engine.event_bus is bus
    assert engine.leaderboard_size == 10
    assert watcher.engine is engine
    assert watcher.interval_seconds == 2.0
