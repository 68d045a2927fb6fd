from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import DatastoreError
from src.models.assignment import Assignment


class AssignmentRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_open(self) -> List[Assignment]:
        """Assignments not yet completed, soonest due first."""
        stmt = (
            select(Assignment)
            .where(Assignment.is_completed.is_(False))
            .order_by(Assignment.due_date.asc())
        )
        try:
            return list(self.session.scalars(stmt))
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatastoreError(f"Failed to load open assignments: {e}") from e
