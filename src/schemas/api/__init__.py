from src.schemas.api.assignments import ReminderRunResponse
from src.schemas.api.chat import ChatRequest, ChatResponse
from src.schemas.api.flashcards import FlashcardsResponse, GenerateFlashcardsRequest
from src.schemas.api.grading import GradeQuizRequest, GradeQuizResponse
from src.schemas.api.health import PingResponse
from src.schemas.api.notifications import SendNotificationRequest, SendNotificationResponse
from src.schemas.api.quizzes import GenerateQuizRequest, QuizResponse
from src.schemas.api.study_plans import StudyPlanRequest, StudyPlanResponse

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "GenerateFlashcardsRequest",
    "FlashcardsResponse",
    "GenerateQuizRequest",
    "QuizResponse",
    "GradeQuizRequest",
    "GradeQuizResponse",
    "PingResponse",
    "ReminderRunResponse",
    "SendNotificationRequest",
    "SendNotificationResponse",
    "StudyPlanRequest",
    "StudyPlanResponse",
]
