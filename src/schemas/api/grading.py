from typing import List, Optional

from pydantic import BaseModel
from src.schemas.generation import GradedResult, GradingInput


class GradeQuizRequest(BaseModel):
    questions: Optional[List[GradingInput]] = None


class GradeQuizResponse(BaseModel):
    success: bool = True
    results: List[GradedResult]
