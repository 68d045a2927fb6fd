import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class PostgreSQLDatabase:
    """Engine + session factory for the hosted PostgreSQL datastore."""

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        self.database_url = database_url
        self.engine: Engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def startup(self) -> None:
        """Verify connectivity; schema is managed by alembic."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Connected to PostgreSQL")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def teardown(self) -> None:
        self.engine.dispose()
        logger.info("PostgreSQL engine disposed")
