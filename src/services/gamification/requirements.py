"""Badge unlock rules, one model per requirement kind.

Each kind carries only the threshold it needs. A definition is turned into a
rule with :func:`build_requirement`; adding a kind means adding a model here
and listing it in ``Requirement``.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from src.schemas.gamification import BadgeDefinition, UserStanding

PERFECT_WEEK_DAYS = 7


class PointsRequirement(BaseModel):
    kind: Literal["points"] = "points"
    value: int

    def is_met(self, standing: UserStanding) -> bool:
        return standing.points >= self.value


class LevelRequirement(BaseModel):
    kind: Literal["level"] = "level"
    value: int

    def is_met(self, standing: UserStanding) -> bool:
        return standing.level >= self.value


class StreakRequirement(BaseModel):
    kind: Literal["streak"] = "streak"
    value: int

    def is_met(self, standing: UserStanding) -> bool:
        return standing.current_streak >= self.value


class Top10Requirement(BaseModel):
    kind: Literal["top_10"] = "top_10"

    def is_met(self, standing: UserStanding) -> bool:
        return standing.is_top_10


class Top1Requirement(BaseModel):
    kind: Literal["top_1"] = "top_1"

    def is_met(self, standing: UserStanding) -> bool:
        return standing.is_top_1


class FirstLoginRequirement(BaseModel):
    kind: Literal["first_login"] = "first_login"

    def is_met(self, standing: UserStanding) -> bool:
        return not standing.first_login_completed


class PerfectWeekRequirement(BaseModel):
    kind: Literal["perfect_week"] = "perfect_week"

    def is_met(self, standing: UserStanding) -> bool:
        return standing.current_streak >= PERFECT_WEEK_DAYS


Requirement = Annotated[
    Union[
        PointsRequirement,
        LevelRequirement,
        StreakRequirement,
        Top10Requirement,
        Top1Requirement,
        FirstLoginRequirement,
        PerfectWeekRequirement,
    ],
    Field(discriminator="kind"),
]

_requirement_adapter = TypeAdapter(Requirement)


def build_requirement(badge: BadgeDefinition) -> Requirement:
    """
    :raises pydantic.ValidationError: for an unknown requirement type
    """
    return _requirement_adapter.validate_python(
        {"kind": badge.requirement_type, "value": badge.requirement_value}
    )
