import time

from fastapi.testclient import TestClient
from sqlalchemy import func, select

import src.main as main
from src.db.interfaces.postgresql import Base, PostgreSQLDatabase
from src.models import Badge, Gamification, Notification
from src.repositories.gamification import GamificationRepository


def badge_notifications(database, user_id):
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id, Notification.type == "badge"
    )
    with database.get_session() as session:
        return session.scalar(stmt)


def test_startup_runs_badge_sweep(tmp_path, monkeypatch, fake_llm):
    database = PostgreSQLDatabase(f"sqlite:///{tmp_path / 'app.db'}")
    Base.metadata.create_all(database.engine)
    with database.get_session() as session:
        session.add_all([
            Gamification(user_id="u1", points=150),
            Badge(id="b100", name="Century", requirement_type="points", requirement_value=100),
        ])
        session.commit()

    monkeypatch.setattr(main, "make_database", lambda: database)
    monkeypatch.setattr(main, "make_llm_client", lambda: fake_llm)

    with TestClient(main.app):
        state = main.app.state
        assert state.metrics_watcher.engine is state.badge_engine
        assert state.badge_engine.event_bus is state.badge_events

        deadline = time.monotonic() + 5
        while time.monotonic() < deadline and not badge_notifications(database, "u1"):
            time.sleep(0.05)

        assert badge_notifications(database, "u1") == 1
        with database.get_session() as session:
            assert GamificationRepository(session).get_earned_badge_ids("u1") == {"b100"}
