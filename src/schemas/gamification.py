from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Rarity = Literal["common", "rare", "epic", "legendary", "mythic"]

RequirementType = Literal[
    "points",
    "level",
    "streak",
    "top_10",
    "top_1",
    "first_login",
    "perfect_week",
]

BADGE_ICONS = frozenset(
    {"Trophy", "Flame", "Star", "Zap", "Crown", "Gem", "Sparkles", "Medal", "Award", "Shield"}
)
DEFAULT_BADGE_ICON = "Trophy"
DEFAULT_BADGE_DESCRIPTION = "Amazing work!"


def level_for_points(points: int) -> int:
    return points // 100 + 1


class BadgeDefinition(BaseModel):
    """Admin-managed badge definition; read-only to the engine."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    icon: str = DEFAULT_BADGE_ICON
    rarity: Rarity = "common"
    requirement_type: str
    requirement_value: int = 0


class UserMetrics(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    points: int = 0
    current_streak: int = 0
    first_login_completed: bool = False

    @property
    def level(self) -> int:
        return level_for_points(self.points)


class UserStanding(BaseModel):
    """Everything a badge requirement may look at for one user, at one instant."""

    points: int
    level: int
    current_streak: int
    first_login_completed: bool
    leaderboard_index: int = Field(-1, description="Zero-based index in the leaderboard, -1 if absent")

    @property
    def is_top_10(self) -> bool:
        return 0 <= self.leaderboard_index < 10

    @property
    def is_top_1(self) -> bool:
        return self.leaderboard_index == 0


class BadgeUnlockedEvent(BaseModel):
    """Payload of the in-process "badge-unlocked" event."""

    id: str
    name: str
    description: str
    icon: str
    rarity: Rarity


class EvaluationResult(BaseModel):
    success: bool
    newly_awarded_names: List[str] = Field(default_factory=list)
