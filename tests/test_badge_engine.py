import asyncio
import threading

import pytest
from sqlalchemy import select

from src.exceptions import DatastoreError
from src.models import Gamification, Notification, UserBadge
from src.repositories.gamification import GamificationRepository
from src.repositories.notifications import NotificationRepository
from src.services.gamification.engine import BadgeEngine
from src.services.gamification.events import BadgeEventBus


@pytest.fixture
def bus():
    return BadgeEventBus()


@pytest.fixture
def received(bus):
    events = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def engine(session_factory, bus):
    return BadgeEngine(session_factory=session_factory, event_bus=bus)


def earned_rows(session, user_id):
    return session.scalars(select(UserBadge).where(UserBadge.user_id == user_id)).all()


def notifications_for(session, user_id):
    return session.scalars(select(Notification).where(Notification.user_id == user_id)).all()


async def test_points_threshold(engine, add_user, add_badge):
    add_user("u1", points=250)
    add_badge("b200", "points", 200, name="Point Collector")
    add_badge("b300", "points", 300, name="Point Hoarder")

    result = await engine.evaluate("u1")

    assert result.success is True
    assert result.newly_awarded_names == ["Point Collector"]


async def test_level_is_derived_from_points(engine, add_user, add_badge):
    add_user("u1", points=250)
    add_badge("lvl3", "level", 3)
    add_badge("lvl4", "level", 4)

    result = await engine.evaluate("u1")
    assert result.newly_awarded_names == ["lvl3"]


async def test_streak_and_perfect_week(engine, add_user, add_badge):
    add_user("u1", current_streak=7)
    add_badge("streak5", "streak", 5)
    add_badge("streak10", "streak", 10)
    add_badge("week", "perfect_week", 0)

    result = await engine.evaluate("u1")
    assert sorted(result.newly_awarded_names) == ["streak5", "week"]


async def test_leaderboard_badges(engine, add_user, add_badge):
    for i in range(12):
        add_user(f"u{i:02d}", points=1000 - i * 10)
    add_badge("top10", "top_10")
    add_badge("top1", "top_1")

    assert sorted((await engine.evaluate("u00")).newly_awarded_names) == ["top1", "top10"]
    assert (await engine.evaluate("u09")).newly_awarded_names == ["top10"]
    assert (await engine.evaluate("u10")).newly_awarded_names == []


async def test_first_login_marks_flag(engine, session, add_user, add_badge):
    add_user("u1", first_login_completed=False)
    add_badge("hello", "first_login", name="Welcome Aboard")

    result = await engine.evaluate("u1")

    assert result.newly_awarded_names == ["Welcome Aboard"]
    session.expire_all()
    assert session.get(Gamification, "u1").first_login_completed is True


async def test_first_login_not_awarded_when_completed(engine, add_user, add_badge):
    add_user("u1", first_login_completed=True)
    add_badge("hello", "first_login")
    assert (await engine.evaluate("u1")).newly_awarded_names == []


async def test_missing_metrics_is_noop(engine, session, add_badge):
    add_badge("b0", "points", 0)
    result = await engine.evaluate("ghost")
    assert result.success is True
    assert result.newly_awarded_names == []
    assert earned_rows(session, "ghost") == []


async def test_grant_side_effects(engine, session, received, add_user, add_badge):
    add_user("u1", points=500)
    add_badge("b1", "points", 100, name="Centurion", icon="Crown", rarity="epic", description="100 points!")

    await engine.evaluate("u1")

    rows = earned_rows(session, "u1")
    assert [r.badge_id for r in rows] == ["b1"]
    notes = notifications_for(session, "u1")
    assert [n.message for n in notes] == ['You unlocked the "Centurion" badge!']
    assert notes[0].data == {"badge_id": "b1"}
    assert len(received) == 1
    event = received[0]
    assert (event.id, event.name, event.icon, event.rarity, event.description) == (
        "b1", "Centurion", "Crown", "epic", "100 points!",
    )


async def test_unknown_icon_and_missing_description_defaults(engine, received, add_user, add_badge):
    add_user("u1", points=500)
    add_badge("b1", "points", 100, icon="Unicorn", description=None)

    await engine.evaluate("u1")

    assert received[0].icon == "Trophy"
    assert received[0].description == "Amazing work!"


async def test_second_evaluation_awards_nothing(engine, session, received, add_user, add_badge):
    add_user("u1", points=500)
    add_badge("b1", "points", 100)

    first = await engine.evaluate("u1")
    second = await engine.evaluate("u1")

    assert first.newly_awarded_names == ["b1"]
    assert second.newly_awarded_names == []
    assert len(earned_rows(session, "u1")) == 1
    assert len(received) == 1


async def test_concurrent_evaluations_grant_once(engine, session, received, add_user, add_badge, monkeypatch):
    """Both evaluations pass the earned-set check before either inserts."""
    add_user("u1", points=500)
    add_badge("b1", "points", 100)
    both_ready = threading.Barrier(2, timeout=5)
    threads = set()
    real_grant = GamificationRepository.grant_badge

    def racing_grant(self, user_id, badge_id):
        threads.add(threading.get_ident())
        both_ready.wait()
        return real_grant(self, user_id, badge_id)

    monkeypatch.setattr(GamificationRepository, "grant_badge", racing_grant)

    results = await asyncio.gather(engine.evaluate("u1"), engine.evaluate("u1"))

    assert len(threads) == 2
    assert all(r.success for r in results)
    awarded = [name for r in results for name in r.newly_awarded_names]
    assert awarded == ["b1"]
    assert len(earned_rows(session, "u1")) == 1
    assert len(notifications_for(session, "u1")) == 1
    assert len(received) == 1


async def test_evaluate_runs_off_the_event_loop(engine, add_user, monkeypatch):
    add_user("u1", points=500)
    loop_thread = threading.get_ident()
    seen = []
    real_get_metrics = GamificationRepository.get_metrics

    def tracking_get_metrics(self, user_id):
        seen.append(threading.get_ident())
        return real_get_metrics(self, user_id)

    monkeypatch.setattr(GamificationRepository, "get_metrics", tracking_get_metrics)

    await engine.evaluate("u1")
    assert seen and loop_thread not in seen


async def test_lost_race_is_skipped_silently(engine, session, received, add_user, add_badge, monkeypatch):
    """Another evaluation granted the badge after this one read the earned set."""
    add_user("u1", points=500)
    add_badge("b1", "points", 100)
    session.add(UserBadge(user_id="u1", badge_id="b1"))
    session.commit()
    monkeypatch.setattr(GamificationRepository, "get_earned_badge_ids", lambda self, user_id: set())

    result = await engine.evaluate("u1")

    assert result.success is True
    assert result.newly_awarded_names == []
    assert len(earned_rows(session, "u1")) == 1
    assert notifications_for(session, "u1") == []
    assert received == []


async def test_failure_on_one_badge_does_not_stop_others(engine, session, add_user, add_badge, monkeypatch):
    add_user("u1", points=500)
    add_badge("broken", "points", 100)
    add_badge("fine", "points", 200)
    real_grant = GamificationRepository.grant_badge

    def flaky_grant(self, user_id, badge_id):
        if badge_id == "broken":
            raise DatastoreError("write timeout")
        return real_grant(self, user_id, badge_id)

    monkeypatch.setattr(GamificationRepository, "grant_badge", flaky_grant)

    result = await engine.evaluate("u1")

    assert result.success is True
    assert result.newly_awarded_names == ["fine"]
    assert [r.badge_id for r in earned_rows(session, "u1")] == ["fine"]


async def test_notification_failure_keeps_grant_and_event(engine, session, received, add_user, add_badge, monkeypatch):
    add_user("u1", points=500)
    add_badge("b1", "points", 100, name="Centurion")

    def broken_create(self, **kwargs):
        raise DatastoreError("notifications table locked")

    monkeypatch.setattr(NotificationRepository, "create", broken_create)

    result = await engine.evaluate("u1")

    assert result.newly_awarded_names == ["Centurion"]
    assert [r.badge_id for r in earned_rows(session, "u1")] == ["b1"]
    assert [e.id for e in received] == ["b1"]


async def test_first_login_flag_failure_keeps_grant(engine, session, received, add_user, add_badge, monkeypatch):
    add_user("u1", first_login_completed=False)
    add_badge("hello", "first_login", name="Welcome Aboard")

    def broken_mark(self, user_id):
        raise DatastoreError("update failed")

    monkeypatch.setattr(GamificationRepository, "mark_first_login_completed", broken_mark)

    result = await engine.evaluate("u1")

    assert result.newly_awarded_names == ["Welcome Aboard"]
    assert len(notifications_for(session, "u1")) == 1
    assert len(received) == 1


async def test_unknown_requirement_type_is_skipped(engine, add_user, add_badge):
    add_user("u1", points=500)
    add_badge("odd", "quiz_master", 3)
    add_badge("b1", "points", 100)

    result = await engine.evaluate("u1")
    assert result.newly_awarded_names == ["b1"]


async def test_load_failure_reports_unsuccessful(engine, received, add_user, add_badge, monkeypatch):
    add_user("u1", points=500)
    add_badge("b1", "points", 100)

    def broken(self, limit=10):
        raise DatastoreError("connection reset")

    monkeypatch.setattr(GamificationRepository, "get_top_user_ids", broken)

    result = await engine.evaluate("u1")
    assert result.success is False
    assert result.newly_awarded_names == []
    assert received == []
