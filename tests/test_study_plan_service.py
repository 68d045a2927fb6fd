import json
from datetime import datetime, timezone

import pytest

from src.exceptions import LLMException
from src.services.generation.study_plans import (
    DEFAULT_PLAN_DAYS,
    CourseRequiredError,
    StudyPlanService,
    plan_length,
)

NOW = datetime(2025, 12, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def service(fake_llm):
    return StudyPlanService(llm_client=fake_llm, clock=lambda: NOW)


def model_plan(days):
    return {
        "title": f"{days}-Day Plan: Biology",
        "duration": f"{days} days",
        "dailyHours": 2,
        "totalSessions": days,
        "schedule": [
            {
                "day": i + 1,
                "date": f"2025-12-{i + 1:02d}",
                "focus": f"Topic {i + 1}",
                "tasks": ["Read", "Practice"],
                "timeEstimate": "2 hours",
                "motivation": "You got this",
            }
            for i in range(days)
        ],
    }


def test_plan_length():
    assert plan_length(None, NOW) == DEFAULT_PLAN_DAYS
    assert plan_length("2025-12-04", NOW) == 3
    assert plan_length("2025-12-04T09:30:00Z", NOW) == 3
    assert plan_length("2025-12-04T09:31:00Z", NOW) == 4
    assert plan_length("2025-11-01", NOW) == 1
    assert plan_length("next tuesday", NOW) == DEFAULT_PLAN_DAYS


async def test_course_required(service, fake_llm):
    with pytest.raises(CourseRequiredError):
        await service.create_plan(course="  ")
    assert fake_llm.calls == []


async def test_model_plan_used(service, fake_llm):
    fake_llm.responses = ["```json\n" + json.dumps(model_plan(14)) + "\n```"]
    plan, is_fallback = await service.create_plan(course="Biology", hours_per_day="2")

    assert is_fallback is False
    assert plan.daily_hours == "2"
    assert len(plan.schedule) == 14
    assert plan.schedule[0].focus == "Topic 1"
    call = fake_llm.calls[0]
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 3500
    assert call["system_instruction"]
    assert "Duration: 14-day intensive" in call["prompt"]


async def test_garbage_reply_falls_back(service, fake_llm):
    fake_llm.responses = ["¯\\_(ツ)_/¯ not a plan"]
    plan, is_fallback = await service.create_plan(course="Biology", exam_date="2025-12-06")

    assert is_fallback is True
    assert len(plan.schedule) == 5
    assert plan.title == "5-Day Plan: Biology"
    assert plan.total_sessions == 5
    assert [d.day for d in plan.schedule] == [1, 2, 3, 4, 5]
    assert plan.schedule[0].date == "2025-12-01"
    assert plan.schedule[4].date == "2025-12-05"
    assert plan.schedule[0].tasks == ["Review material", "Practice problems", "Take notes"]
    assert plan.schedule[0].time_estimate == "3 hours"


async def test_schema_mismatch_falls_back(service, fake_llm):
    fake_llm.responses = ['{"title": "Plan"}']
    plan, is_fallback = await service.create_plan(course="Biology")
    assert is_fallback is True
    assert len(plan.schedule) == DEFAULT_PLAN_DAYS


async def test_model_failure_falls_back(service, fake_llm):
    fake_llm.error = LLMException("quota exceeded")
    plan, is_fallback = await service.create_plan(course="Biology")
    assert is_fallback is True
    assert len(plan.schedule) == DEFAULT_PLAN_DAYS


async def test_short_schedule_is_padded(service, fake_llm):
    fake_llm.responses = [json.dumps(model_plan(3))]
    plan, is_fallback = await service.create_plan(course="Biology", exam_date="2025-12-06")

    assert is_fallback is False
    assert len(plan.schedule) == 5
    assert plan.schedule[2].focus == "Topic 3"
    assert plan.schedule[3].day == 4
    assert plan.schedule[3].focus == "Study Session"


async def test_long_schedule_is_trimmed(service, fake_llm):
    fake_llm.responses = [json.dumps(model_plan(20))]
    plan, _ = await service.create_plan(course="Biology")
    assert len(plan.schedule) == DEFAULT_PLAN_DAYS


async def test_session_count_and_duration_follow_fitted_schedule(service, fake_llm):
    fake_llm.responses = [json.dumps(model_plan(20))]
    plan, _ = await service.create_plan(course="Biology", exam_date="2025-12-06")

    assert len(plan.schedule) == 5
    assert plan.total_sessions == 5
    assert plan.duration == "5 days"
