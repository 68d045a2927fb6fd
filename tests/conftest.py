from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import src.models  # noqa
from src.db.interfaces.postgresql import Base
from src.dependencies import get_llm_client, get_session
from src.main import app
from src.models import Badge, Gamification


class FakeLLMClient:
    """Scripted stand-in for LLMClient: replays queued replies and records calls."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def generate(self, prompt, model=None, system_instruction=None, **kwargs):
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction, **kwargs})
        return self._next()

    def chat(self, messages, model=None, system_instruction=None, **kwargs):
        self.calls.append({"messages": messages, "system_instruction": system_instruction, **kwargs})
        return self._next()

    def _next(self):
        if self.error is not None:
            raise self.error
        return {"response": self.responses.pop(0) if self.responses else ""}


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite so sessions in different threads get their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'studyhub.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_maker):
    with session_maker() as session:
        yield session


@pytest.fixture
def session_factory(session_maker):
    """Context-managed session per call, the shape of PostgreSQLDatabase.get_session."""
    @contextmanager
    def _open():
        with session_maker() as session:
            yield session
    return _open


@pytest.fixture
def client(session, fake_llm):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_user(session):
    def _add(user_id, points=0, current_streak=0, first_login_completed=True):
        session.add(Gamification(
            user_id=user_id,
            points=points,
            current_streak=current_streak,
            first_login_completed=first_login_completed,
        ))
        session.commit()
    return _add


@pytest.fixture
def add_badge(session):
    def _add(badge_id, requirement_type, requirement_value=0, name=None, icon="Star",
             rarity="common", description="Earned it"):
        session.add(Badge(
            id=badge_id,
            name=name or badge_id,
            description=description,
            icon=icon,
            rarity=rarity,
            requirement_type=requirement_type,
            requirement_value=requirement_value,
        ))
        session.commit()
    return _add
