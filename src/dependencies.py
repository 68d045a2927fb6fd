from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.db.interfaces.postgresql import PostgreSQLDatabase
from src.repositories.assignments import AssignmentRepository
from src.repositories.chat import ChatRepository
from src.repositories.notifications import NotificationRepository
from src.services.assignments.reminders import AssignmentReminderService
from src.services.chat.service import ChatService
from src.services.generation.grading import GradingService
from src.services.generation.service import GenerationService
from src.services.generation.study_plans import StudyPlanService
from src.services.llm.client import LLMClient


def get_database(request: Request) -> PostgreSQLDatabase:
    return request.app.state.database


def get_session(
    database: Annotated[PostgreSQLDatabase, Depends(get_database)],
) -> Generator[Session, None, None]:
    with database.get_session() as session:
        yield session


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm_client


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[Session, Depends(get_session)]
LLMClientDep = Annotated[LLMClient, Depends(get_llm_client)]


def get_generation_service(llm_client: LLMClientDep) -> GenerationService:
    return GenerationService(llm_client=llm_client)


def get_grading_service(llm_client: LLMClientDep) -> GradingService:
    return GradingService(llm_client=llm_client)


def get_study_plan_service(llm_client: LLMClientDep) -> StudyPlanService:
    return StudyPlanService(llm_client=llm_client)


def get_chat_service(session: SessionDep, llm_client: LLMClientDep) -> ChatService:
    return ChatService(repo=ChatRepository(session), llm_client=llm_client)


def get_notification_repository(session: SessionDep) -> NotificationRepository:
    return NotificationRepository(session)


def get_reminder_service(session: SessionDep) -> AssignmentReminderService:
    return AssignmentReminderService(
        assignments=AssignmentRepository(session),
        notifications=NotificationRepository(session),
    )


GenerationServiceDep = Annotated[GenerationService, Depends(get_generation_service)]
GradingServiceDep = Annotated[GradingService, Depends(get_grading_service)]
StudyPlanServiceDep = Annotated[StudyPlanService, Depends(get_study_plan_service)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
NotificationRepositoryDep = Annotated[NotificationRepository, Depends(get_notification_repository)]
ReminderServiceDep = Annotated[AssignmentReminderService, Depends(get_reminder_service)]
