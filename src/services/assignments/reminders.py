import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from src.exceptions import DatastoreError
from src.models.assignment import Assignment
from src.repositories.assignments import AssignmentRepository
from src.repositories.notifications import NotificationRepository

logger = logging.getLogger(__name__)

REMINDER_TYPE = "assignment_reminder"


def full_days_until(due: datetime, now: datetime) -> int:
    """Whole days between ``now`` and ``due``, truncated toward zero."""
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return int((due - now).total_seconds() / 86400)


def reminder_message(assignment: Assignment, now: datetime) -> Optional[str]:
    days = full_days_until(assignment.due_date, now)
    if days == 0:
        return f'"{assignment.title}" is due TODAY!'
    if days == 1:
        return f'"{assignment.title}" is due TOMORROW.'
    return None


class AssignmentReminderService:
    """Notifies owners of open assignments due within the next two days."""

    def __init__(
        self,
        assignments: AssignmentRepository,
        notifications: NotificationRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.assignments = assignments
        self.notifications = notifications
        self.clock = clock

    def send_due_reminders(self) -> int:
        """Write one reminder per assignment due today or tomorrow; returns how many were stored.

        :raises DatastoreError: when the open assignments cannot be loaded
        """
        now = self.clock()
        sent = 0
        for assignment in self.assignments.list_open():
            message = reminder_message(assignment, now)
            if message is None:
                continue
            try:
                self.notifications.create(
                    user_id=assignment.user_id,
                    message=message,
                    type=REMINDER_TYPE,
                    data={"assignmentId": assignment.id},
                )
                sent += 1
            except DatastoreError as e:
                logger.error(f"Reminder for assignment {assignment.id} not stored: {e}")

        logger.info(f"Assignment reminders sent: {sent}")
        return sent
