from src.models.assignment import Assignment
from src.models.chat import AIChatMessage
from src.models.gamification import Badge, Gamification, UserBadge
from src.models.notification import Notification

__all__ = ["AIChatMessage", "Assignment", "Badge", "Gamification", "Notification", "UserBadge"]
