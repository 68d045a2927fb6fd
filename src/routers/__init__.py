"""Router modules for the StudyHub API."""

from . import ai_chat, assignments, generate, grade, notifications, ping, study_plans

__all__ = ["ai_chat", "assignments", "generate", "grade", "notifications", "ping", "study_plans"]
