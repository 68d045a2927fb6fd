from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from src.schemas.generation import StudyPlan


class StudyPlanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course: Optional[str] = None
    exam_date: Optional[str] = Field(None, alias="examDate", description="ISO date of the exam")
    hours_per_day: Union[str, int, float] = Field("3", alias="hoursPerDay")
    topics: Optional[str] = ""
    goal: Optional[str] = "exam"

    @field_validator("hours_per_day")
    @classmethod
    def _hours_as_text(cls, value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)


class StudyPlanResponse(BaseModel):
    plan: StudyPlan
    fallback: bool = Field(
        False, description="True when the plan was synthesized because the AI reply was unusable"
    )
