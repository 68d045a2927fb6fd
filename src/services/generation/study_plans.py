import asyncio
import logging
import math
from datetime import date, datetime, timedelta, timezone
from functools import partial
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from src.exceptions import LLMException
from src.schemas.generation import ExtractionFailure, StudyPlan, StudyPlanDay
from src.services.llm.client import LLMClient
from src.services.llm.parser import ResponseParser
from src.services.llm.prompts import JSON_ONLY_INSTRUCTION, GenerationPromptBuilder

logger = logging.getLogger(__name__)

DEFAULT_PLAN_DAYS = 14
STUDY_PLAN_TEMPERATURE = 0.7
STUDY_PLAN_MAX_TOKENS = 3500

FALLBACK_FOCUS = "Study Session"
FALLBACK_TASKS = ("Review material", "Practice problems", "Take notes")
FALLBACK_MOTIVATION = "Keep going, you're building momentum!"


class CourseRequiredError(ValueError):
    """Raised when a plan is requested without a course name."""


def _parse_exam_date(exam_date: str) -> datetime:
    parsed = datetime.fromisoformat(exam_date.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def plan_length(exam_date: Optional[str], now: datetime) -> int:
    """Days until the exam rounded up (at least 1), or the default intensive length."""
    if not exam_date:
        return DEFAULT_PLAN_DAYS
    try:
        remaining = _parse_exam_date(exam_date) - now
    except ValueError:
        logger.warning(f"Unreadable exam date {exam_date!r}, using {DEFAULT_PLAN_DAYS} days")
        return DEFAULT_PLAN_DAYS
    return max(1, math.ceil(remaining.total_seconds() / 86400))


def fallback_day(index: int, start: date, hours_per_day: str) -> StudyPlanDay:
    return StudyPlanDay(
        day=index + 1,
        date=(start + timedelta(days=index)).isoformat(),
        focus=FALLBACK_FOCUS,
        tasks=list(FALLBACK_TASKS),
        time_estimate=f"{hours_per_day} hours",
        motivation=FALLBACK_MOTIVATION,
    )


def fallback_plan(course: str, days: int, hours_per_day: str, start: date) -> StudyPlan:
    return StudyPlan(
        title=f"{days}-Day Plan: {course}",
        duration=f"{days} days",
        daily_hours=hours_per_day,
        total_sessions=days,
        schedule=[fallback_day(i, start, hours_per_day) for i in range(days)],
    )


class StudyPlanService:
    """Builds a day-by-day study plan; never fails once the request is valid."""

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[GenerationPromptBuilder] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.llm = llm_client
        self.prompts = prompt_builder or GenerationPromptBuilder()
        self.clock = clock

    async def create_plan(
        self,
        course: Optional[str],
        exam_date: Optional[str] = None,
        hours_per_day: str = "3",
        topics: Optional[str] = "",
        goal: Optional[str] = "exam",
    ) -> Tuple[StudyPlan, bool]:
        """Return ``(plan, is_fallback)``.

        :raises CourseRequiredError: when ``course`` is blank
        """
        if not (course or "").strip():
            raise CourseRequiredError("Course name is required")

        now = self.clock()
        days = plan_length(exam_date, now)
        prompt = self.prompts.study_plan(
            course=course,
            days=days,
            hours_per_day=hours_per_day,
            topics=topics or "",
            goal=goal or "exam",
            has_exam_date=bool(exam_date),
        )

        try:
            result = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(
                    self.llm.generate,
                    prompt=prompt,
                    system_instruction=JSON_ONLY_INSTRUCTION,
                    temperature=STUDY_PLAN_TEMPERATURE,
                    max_tokens=STUDY_PLAN_MAX_TOKENS,
                ),
            )
        except LLMException as e:
            logger.error(f"Study plan model call failed, serving fallback plan: {e}")
            return fallback_plan(course, days, hours_per_day, now.date()), True

        extracted = ResponseParser.extract_object(result.get("response", ""))
        if isinstance(extracted, ExtractionFailure):
            logger.error(
                "Study plan JSON parse failed, serving fallback plan",
                extra={"reason": extracted.reason, "preview": extracted.raw_snippet},
            )
            return fallback_plan(course, days, hours_per_day, now.date()), True

        try:
            plan = StudyPlan.model_validate(extracted.value)
        except ValidationError as e:
            logger.error(f"Study plan failed schema validation, serving fallback plan: {e.error_count()} errors")
            return fallback_plan(course, days, hours_per_day, now.date()), True

        plan.schedule = self._fit_schedule(plan.schedule, days, hours_per_day, now.date())
        plan.total_sessions = days
        plan.duration = f"{days} days"
        return plan, False

    @staticmethod
    def _fit_schedule(
        schedule: List[StudyPlanDay], days: int, hours_per_day: str, start: date
    ) -> List[StudyPlanDay]:
        """Trim or pad the model's schedule so it covers exactly ``days`` days."""
        fitted = schedule[:days]
        for index in range(len(fitted), days):
            fitted.append(fallback_day(index, start, hours_per_day))
        return fitted
