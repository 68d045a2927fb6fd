import logging

from fastapi import APIRouter, HTTPException

from src.dependencies import GradingServiceDep
from src.schemas.api.grading import GradeQuizRequest, GradeQuizResponse
from src.schemas.generation import GenerationError

router = APIRouter(prefix="/grade", tags=["grade"])
logger = logging.getLogger(__name__)


@router.post("/quiz", response_model=GradeQuizResponse)
async def grade_quiz(body: GradeQuizRequest, service: GradingServiceDep):
    """Grade every answer of a quiz attempt in one model call."""
    try:
        result = await service.grade(body.questions)
    except Exception as e:
        logger.error(f"Quiz grading error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if isinstance(result, GenerationError):
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return GradeQuizResponse(results=result)
