# backend/classbook/services/class_scheduler.py
"""
Class Scheduler Service.

Materializes a class template into one active class per calendar day and
manages edits and deletion of individual class instances. A schedule request
is all-or-nothing: if any day collides with another class taught by the same
instructor, nothing is written.
"""

from datetime import date, time, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    ClassHasBookingsException,
    InstructorConflictException,
    NotFoundException,
    ValidationException,
)
from ..core.time_windows import Clock, add_minutes, iter_days, parse_hhmm
from ..models.fitness_class import ClassStatus, FitnessClass
from ..models.instructor import Instructor
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.fitness_class import ClassFilters, ClassScheduleRequest, ClassUpdate
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

REQUIRED_SCHEDULE_FIELDS = (
    "name",
    "instructor_id",
    "start_date",
    "end_date",
    "start_time",
    "duration_minutes",
    "max_capacity",
)

# Columns that may not be cleared by an update
NON_NULLABLE_UPDATE_FIELDS = frozenset(
    {
        "name",
        "instructor_id",
        "class_type",
        "scheduled_date",
        "start_time",
        "duration_minutes",
        "max_capacity",
        "price",
        "status",
    }
)

# Changing any of these moves the class on the calendar
RESCHEDULE_FIELDS = frozenset(
    {"scheduled_date", "start_time", "duration_minutes", "instructor_id", "status"}
)


class ClassSchedulerService(BaseService):
    """Schedules, edits and removes class instances."""

    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db, clock=clock)
        self.settings = settings or default_settings
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.conflict_repository = RepositoryFactory.create_conflict_checker_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, clock=self.clock)

    # Validation helpers

    def _parse_start_time(self, value: Optional[str]) -> time:
        try:
            return parse_hhmm(value or "")
        except ValueError:
            raise ValidationException(
                "Invalid time format. Use HH:MM (24-hour)",
                code="CLASS_INVALID_TIME",
                details={"start_time": value},
            )

    def _check_duration(self, duration_minutes: int) -> None:
        low = self.settings.min_class_duration_minutes
        high = self.settings.max_class_duration_minutes
        if not low <= duration_minutes <= high:
            raise ValidationException(
                f"Duration must be between {low} and {high} minutes",
                code="CLASS_INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )

    def _check_capacity(self, max_capacity: int) -> None:
        if max_capacity < 1:
            raise ValidationException(
                "Max capacity must be at least 1",
                code="CLASS_INVALID_CAPACITY",
                details={"max_capacity": max_capacity},
            )

    def _check_future_date(self, value: date, field: str) -> None:
        if value < self.today() + timedelta(days=1):
            raise ValidationException(
                "Classes can only be scheduled from tomorrow onwards",
                code="CLASS_PAST_DATE",
                details={field: value.isoformat()},
            )

    def _validate_template(self, template: ClassScheduleRequest) -> time:
        """Run the template checks in order; return the parsed start time."""
        missing = [
            field
            for field in REQUIRED_SCHEDULE_FIELDS
            if getattr(template, field) is None or getattr(template, field) == ""
        ]
        if missing:
            raise ValidationException(
                "Missing required fields",
                code="CLASS_MISSING_FIELDS",
                details={"missing_fields": missing},
            )

        if template.start_date >= template.end_date:
            raise ValidationException(
                "Start date must be before end date",
                code="CLASS_INVALID_DATE_RANGE",
                details={
                    "start_date": template.start_date.isoformat(),
                    "end_date": template.end_date.isoformat(),
                },
            )

        self._check_future_date(template.start_date, "start_date")
        self._check_capacity(template.max_capacity)
        start_time = self._parse_start_time(template.start_time)
        self._check_duration(template.duration_minutes)
        return start_time

    def _require_active_instructor(self, instructor_id: str, lock: bool = False) -> Instructor:
        instructor = self.conflict_repository.get_instructor(instructor_id, for_update=lock)
        if not instructor:
            raise NotFoundException(
                f"Instructor {instructor_id} not found", code="INSTRUCTOR_NOT_FOUND"
            )
        if not instructor.is_active:
            raise ValidationException(
                "Instructor is not active",
                code="INSTRUCTOR_INACTIVE",
                details={"instructor_id": instructor_id, "status": instructor.status},
            )
        return instructor

    def _lock_instructors(self, *instructor_ids: str) -> None:
        # Always locked in id order
        for instructor_id in sorted(set(instructor_ids)):
            self.conflict_repository.get_instructor(instructor_id, for_update=True)

    def _get_class_or_404(self, class_id: str, for_update: bool = False) -> FitnessClass:
        fitness_class = self.class_repository.get_by_id(class_id, for_update=for_update)
        if not fitness_class:
            raise NotFoundException(f"Class {class_id} not found", code="CLASS_NOT_FOUND")
        return fitness_class

    # Operations

    @BaseService.measure_operation("schedule_classes")
    def schedule_classes(self, template: ClassScheduleRequest) -> List[FitnessClass]:
        """
        Create one active class per day from start_date to end_date inclusive.

        Args:
            template: Class template and date range

        Returns:
            The created classes in date order

        Raises:
            ValidationException: Template fails a check (code names the check)
            NotFoundException: Instructor does not exist
            InstructorConflictException: Any day overlaps the instructor's classes
        """
        self.log_operation(
            "schedule_classes",
            instructor_id=template.instructor_id,
            start_date=str(template.start_date),
            end_date=str(template.end_date),
        )

        start_time = self._validate_template(template)
        end_time = add_minutes(start_time, template.duration_minutes)

        with self.transaction():
            self._require_active_instructor(template.instructor_id, lock=True)

            created: List[FitnessClass] = []
            for day in iter_days(template.start_date, template.end_date):
                conflicts = self.conflict_checker.find_instructor_conflicts(
                    template.instructor_id, day, start_time, end_time
                )
                if conflicts:
                    prometheus_metrics.inc_schedule_conflict()
                    raise InstructorConflictException(
                        f"Instructor already has a class on {day.isoformat()} during this time",
                        details={
                            "conflict_date": day.isoformat(),
                            "conflicting_class_id": conflicts[0]["class_id"],
                            "conflicts": conflicts,
                        },
                    )

                created.append(
                    self.class_repository.create(
                        instructor_id=template.instructor_id,
                        name=template.name,
                        class_type=template.class_type or "general",
                        description=template.description,
                        scheduled_date=day,
                        start_time=start_time,
                        end_time=end_time,
                        duration_minutes=template.duration_minutes,
                        max_capacity=template.max_capacity,
                        price=template.price,
                        status=ClassStatus.ACTIVE.value,
                        location=template.location,
                        room=template.room,
                        equipment_needed=list(template.equipment_needed),
                        difficulty_level=template.difficulty_level.value,
                        tags=list(template.tags),
                    )
                )

        prometheus_metrics.inc_classes_scheduled(len(created))
        self.logger.info(
            f"Scheduled {len(created)} classes for instructor {template.instructor_id}",
            extra={"class_ids": [c.id for c in created]},
        )
        return created

    @BaseService.measure_operation("get_class")
    def get_class(self, class_id: str) -> FitnessClass:
        with self.transaction():
            return self._get_class_or_404(class_id)

    @BaseService.measure_operation("list_classes")
    def list_classes(self, filters: Optional[ClassFilters] = None) -> List[FitnessClass]:
        filters = filters or ClassFilters()
        with self.transaction():
            return self.class_repository.list_classes(
                start_date=filters.start_date,
                end_date=filters.end_date,
                instructor_id=filters.instructor_id,
                status=filters.status.value if filters.status else None,
                class_type=filters.class_type,
                limit=min(filters.limit, self.settings.max_page_size),
                offset=filters.offset,
            )

    @BaseService.measure_operation("update_class")
    def update_class(self, class_id: str, update: ClassUpdate) -> FitnessClass:
        """
        Apply a partial update to one class.

        Date, time, duration and instructor changes are re-validated and the
        moved window is checked against the other active classes of the day
        (every class, or only the instructor's, per ``class_overlap_scope``).
        Capacity may not drop below the seats already taken.
        Moving the class to another date moves its bookings with it.
        """
        fields: Dict[str, Any] = update.model_dump(exclude_unset=True)
        self.log_operation("update_class", class_id=class_id, fields=sorted(fields))

        cleared = sorted(f for f in NON_NULLABLE_UPDATE_FIELDS if f in fields and fields[f] is None)
        if cleared:
            raise ValidationException(
                "Required class fields cannot be cleared",
                code="CLASS_MISSING_FIELDS",
                details={"missing_fields": cleared},
            )

        with self.transaction():
            fitness_class = self._get_class_or_404(class_id, for_update=True)
            if not fields:
                return fitness_class

            changes: Dict[str, Any] = dict(fields)

            if "scheduled_date" in fields:
                self._check_future_date(fields["scheduled_date"], "scheduled_date")
            if "start_time" in fields:
                changes["start_time"] = self._parse_start_time(fields["start_time"])
            if "duration_minutes" in fields:
                self._check_duration(fields["duration_minutes"])
            if "status" in fields:
                changes["status"] = fields["status"].value
            if fields.get("difficulty_level") is not None:
                changes["difficulty_level"] = fields["difficulty_level"].value
            if "instructor_id" in fields:
                self._require_active_instructor(fields["instructor_id"])

            if "max_capacity" in fields:
                self._check_capacity(fields["max_capacity"])
                seats_taken = self.booking_repository.count_seats_taken(class_id)
                if fields["max_capacity"] < seats_taken:
                    raise ValidationException(
                        "Max capacity cannot be lower than the number of active bookings",
                        code="CLASS_INVALID_CAPACITY",
                        details={"max_capacity": fields["max_capacity"], "seats_taken": seats_taken},
                    )

            start_time = changes.get("start_time", fitness_class.start_time)
            duration = changes.get("duration_minutes", fitness_class.duration_minutes)
            if "start_time" in fields or "duration_minutes" in fields:
                changes["end_time"] = add_minutes(start_time, duration)
            end_time = changes.get("end_time", fitness_class.end_time)

            scheduled_date = changes.get("scheduled_date", fitness_class.scheduled_date)
            instructor_id = changes.get("instructor_id", fitness_class.instructor_id)
            status = changes.get("status", fitness_class.status)

            if RESCHEDULE_FIELDS & set(fields) and status == ClassStatus.ACTIVE.value:
                self._lock_instructors(fitness_class.instructor_id, instructor_id)
                scope_instructor = (
                    instructor_id if self.settings.class_overlap_scope == "instructor" else None
                )
                conflicts = self.conflict_checker.find_schedule_overlaps(
                    scheduled_date,
                    start_time,
                    end_time,
                    exclude_class_id=class_id,
                    instructor_id=scope_instructor,
                )
                if conflicts:
                    prometheus_metrics.inc_schedule_conflict()
                    raise InstructorConflictException(
                        "Class schedule overlaps with an existing class",
                        details={
                            "conflict_date": scheduled_date.isoformat(),
                            "conflicting_class_id": conflicts[0]["class_id"],
                            "conflicts": conflicts,
                        },
                    )

            date_moved = scheduled_date != fitness_class.scheduled_date
            self.class_repository.update_fields(fitness_class, changes)
            if date_moved:
                self.booking_repository.move_participation_date(class_id, scheduled_date)

        self.logger.info(f"Updated class {class_id}", extra={"fields": sorted(changes)})
        return fitness_class

    @BaseService.measure_operation("delete_class")
    def delete_class(self, class_id: str) -> None:
        """
        Physically remove a future class that nobody holds a booking for.

        Cancelled bookings of the class are removed with it.

        Raises:
            NotFoundException: Class does not exist
            ClassHasBookingsException: A non-cancelled booking references the class
            ValidationException: The class is not strictly in the future
        """
        self.log_operation("delete_class", class_id=class_id)
        with self.transaction():
            fitness_class = self._get_class_or_404(class_id, for_update=True)

            booking_count = self.booking_repository.count_non_cancelled(class_id)
            if booking_count > 0:
                raise ClassHasBookingsException(class_id, booking_count)

            if not fitness_class.is_future(self.today()):
                raise ValidationException(
                    "Cannot delete past or current classes",
                    code="CLASS_PAST_DATE",
                    details={"scheduled_date": fitness_class.scheduled_date.isoformat()},
                )

            self.booking_repository.delete_cancelled_for_class(class_id)
            self.class_repository.delete(class_id)

        self.logger.info(f"Deleted class {class_id}")
