# backend/classbook/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the Classbook engine.

Loads the active classes that could collide with a candidate window. Overlap
arithmetic lives in the service; this layer only narrows by date, instructor
and status.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import supports_row_locks
from ..models.fitness_class import ClassStatus, FitnessClass
from ..models.instructor import Instructor
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[FitnessClass]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, FitnessClass)
        self.logger = logging.getLogger(__name__)

    def get_classes_for_conflict_check(
        self,
        check_date: date,
        instructor_id: Optional[str] = None,
        exclude_class_id: Optional[str] = None,
    ) -> List[FitnessClass]:
        """
        Get active classes on a date that a new window could overlap.

        Args:
            check_date: The date to check
            instructor_id: Restrict to one instructor; None scans every class on the day
            exclude_class_id: Class being edited, excluded from its own check

        Returns:
            Active classes ordered by start time
        """
        try:
            query = self.db.query(FitnessClass).filter(
                FitnessClass.scheduled_date == check_date,
                FitnessClass.status == ClassStatus.ACTIVE.value,
            )

            if instructor_id:
                query = query.filter(FitnessClass.instructor_id == instructor_id)
            if exclude_class_id:
                query = query.filter(FitnessClass.id != exclude_class_id)

            return cast(List[FitnessClass], query.order_by(FitnessClass.start_time).all())

        except SQLAlchemyError as e:
            self.logger.error(f"Error getting classes for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict classes: {str(e)}") from e

    def get_instructor(self, instructor_id: str, for_update: bool = False) -> Optional[Instructor]:
        """
        Get instructor for scheduling validation.

        With ``for_update`` the instructor row is locked so concurrent schedule
        changes for the same instructor run their conflict scan one at a time.
        """
        try:
            query = self.db.query(Instructor).filter(Instructor.id == instructor_id)
            if for_update and supports_row_locks(self.db):
                query = query.with_for_update()
            return cast(Optional[Instructor], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructor: {str(e)}")
            raise RepositoryException(f"Failed to get instructor: {str(e)}") from e
