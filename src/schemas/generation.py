"""Typed records produced by the extraction and validation pipeline."""

from enum import Enum
from typing import Any, Generic, List, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ContentType(str, Enum):
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    STUDY_PLAN = "study-plan"


class Flashcard(BaseModel):
    front: str
    back: str


class QuizQuestion(BaseModel):
    question: str
    correct_answer: str


class CamelModel(BaseModel):
    """Base for records exchanged with clients in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class GradingInput(CamelModel):
    question_id: str = ""
    question: str = ""
    correct_answer: str = ""
    user_answer: str = ""


class GradedResult(CamelModel):
    question_id: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    feedback: str


class StudyPlanDay(CamelModel):
    day: int = Field(..., ge=1)
    date: str = ""
    focus: str = ""
    tasks: List[str] = Field(default_factory=list)
    time_estimate: str = ""
    motivation: str = ""


class StudyPlan(CamelModel):
    title: str
    duration: str
    daily_hours: str
    total_sessions: int
    schedule: List[StudyPlanDay]


class ParsedPayload(BaseModel):
    """A JSON value recovered from model output."""

    value: Any


class ExtractionFailure(BaseModel):
    reason: Literal["no-array-found", "no-object-found", "parse-failed"]
    raw_snippet: str = ""


class ValidationFailure(BaseModel):
    reason: Literal["not-an-array", "empty", "all-filtered"]


class GenerationSuccess(BaseModel, Generic[T]):
    items: List[T]
    count: int


class GenerationError(BaseModel):
    error: str
    status_code: int = 500
