# backend/classbook/services/conflict_checker.py
"""
Conflict Checker Service for the Classbook engine.

Detects overlapping class windows on a single day:
- instructor double-booking (the scheduling invariant)
- studio-wide overlaps used when an existing class is edited

Windows are half-open, so a class ending at 10:00 and one starting at 10:00
do not conflict. The checker runs inside the caller's transaction and has no
side effects.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.time_windows import Clock, format_hhmm, windows_overlap
from ..models.fitness_class import FitnessClass
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def _describe(fitness_class: FitnessClass) -> Dict[str, Any]:
    return {
        "class_id": fitness_class.id,
        "name": fitness_class.name,
        "instructor_id": fitness_class.instructor_id,
        "scheduled_date": fitness_class.scheduled_date.isoformat(),
        "start_time": format_hhmm(fitness_class.start_time),
        "end_time": format_hhmm(fitness_class.end_time),
    }


class ConflictChecker(BaseService):
    """
    Service for checking class schedule conflicts.

    Centralizes overlap detection so the scheduler and class edits apply the
    same rule.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[ConflictCheckerRepository] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
            clock: Optional "today" provider
        """
        super().__init__(db, clock=clock)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("find_schedule_overlaps")
    def find_schedule_overlaps(
        self,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_class_id: Optional[str] = None,
        instructor_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find active classes on a date whose window overlaps [start_time, end_time).

        Args:
            check_date: The date to check
            start_time: Start of the candidate window
            end_time: End of the candidate window; not after start means it runs to midnight
            exclude_class_id: Class being edited, ignored in the scan
            instructor_id: Restrict to one instructor; None scans the whole day

        Returns:
            List of conflicting classes with their windows
        """
        classes = self.repository.get_classes_for_conflict_check(
            check_date, instructor_id=instructor_id, exclude_class_id=exclude_class_id
        )

        conflicts = [
            _describe(existing)
            for existing in classes
            if windows_overlap(start_time, end_time, existing.start_time, existing.end_time)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} class conflicts on {check_date} "
                f"between {format_hhmm(start_time)}-{format_hhmm(end_time)}",
                extra={"instructor_id": instructor_id, "exclude_class_id": exclude_class_id},
            )

        return conflicts

    def find_instructor_conflicts(
        self,
        instructor_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_class_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Overlapping active classes taught by the same instructor."""
        return self.find_schedule_overlaps(
            check_date,
            start_time,
            end_time,
            exclude_class_id=exclude_class_id,
            instructor_id=instructor_id,
        )

    def has_instructor_conflict(
        self,
        instructor_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_class_id: Optional[str] = None,
    ) -> bool:
        """
        Check if the instructor already teaches during the window.

        Simplified boolean check for quick validation.
        """
        return bool(
            self.find_instructor_conflicts(
                instructor_id, check_date, start_time, end_time, exclude_class_id
            )
        )
