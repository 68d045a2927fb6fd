import asyncio
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from src.config import get_settings
from src.db.factory import make_database
from src.middlewares import register_middlewares
from src.routers import ai_chat, assignments, generate, grade, notifications, ping, study_plans
from src.services.gamification.events import BadgeEventBus
from src.services.gamification.factory import make_badge_engine, make_metrics_watcher
from src.services.llm.factory import make_llm_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan for the API.
    """
    logger.info("Starting StudyHub API...")

    settings = get_settings()
    app.state.settings = settings

    database = make_database()
    app.state.database = database
    logger.info("Database connected")

    app.state.llm_client = make_llm_client()
    # Process-wide "badge-unlocked" channel; listeners attach to app.state.badge_events
    app.state.badge_events = BadgeEventBus()
    app.state.badge_engine = make_badge_engine(database.get_session, app.state.badge_events)
    app.state.metrics_watcher = make_metrics_watcher(app.state.badge_engine)
    logger.info("Services initialized: LLM client, badge engine, metrics watcher")

    stop_watching = asyncio.Event()
    watch_task = None
    if settings.badge_watcher_enabled:
        watch_task = asyncio.create_task(app.state.metrics_watcher.watch_all(stop_watching))

    logger.info("API ready")
    yield

    # Cleanup
    stop_watching.set()
    if watch_task is not None:
        await watch_task
    database.teardown()
    logger.info("API shutdown complete")

app = FastAPI(
    title="StudyHub",
    description="AI study content generation and gamification backend.",
    version=os.getenv("APP_VERSION", "0.1.0"),
    lifespan=lifespan,
)

register_middlewares(app)

app.include_router(ping.router, prefix="/api")
app.include_router(generate.router, prefix="/api")
app.include_router(grade.router, prefix="/api")
app.include_router(study_plans.router, prefix="/api")
app.include_router(ai_chat.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
app.include_router(assignments.router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run(app, port=8000, host="0.0.0.0")
