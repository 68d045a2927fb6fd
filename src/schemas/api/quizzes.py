from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from src.schemas.generation import QuizQuestion


class GenerateQuizRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    prompt: Optional[str] = None
    num_questions: Optional[Any] = Field(None, alias="numQuestions", description="Requested question count (5-30)")
    quiz_id: Optional[str] = Field(None, alias="quizId")
    user_id: Optional[str] = Field(None, alias="userId")


class QuizResponse(BaseModel):
    success: bool = True
    questions: List[QuizQuestion]
    count: int
