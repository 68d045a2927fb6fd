import logging

from fastapi import APIRouter, HTTPException

from src.dependencies import StudyPlanServiceDep
from src.schemas.api.study_plans import StudyPlanRequest, StudyPlanResponse
from src.services.generation.study_plans import CourseRequiredError

router = APIRouter(prefix="/study-plans", tags=["study-plans"])
logger = logging.getLogger(__name__)


@router.post("", response_model=StudyPlanResponse)
async def create_study_plan(body: StudyPlanRequest, service: StudyPlanServiceDep):
    """Build a study plan; unusable AI output yields a generic plan instead of an error."""
    try:
        plan, is_fallback = await service.create_plan(
            course=body.course,
            exam_date=body.exam_date,
            hours_per_day=body.hours_per_day,
            topics=body.topics,
            goal=body.goal,
        )
    except CourseRequiredError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Study plan API error: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate plan")

    return StudyPlanResponse(plan=plan, fallback=is_fallback)
