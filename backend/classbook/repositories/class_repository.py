# backend/classbook/repositories/class_repository.py
"""
Class Repository: persistence of scheduled class instances.
"""

from datetime import date
import logging
from typing import Any, Dict, List, Mapping, Optional, cast

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.fitness_class import FitnessClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

# Field name on ClassUpdate -> column on FitnessClass. Anything else is rejected.
CLASS_UPDATE_COLUMNS: Dict[str, str] = {
    "name": "name",
    "instructor_id": "instructor_id",
    "class_type": "class_type",
    "description": "description",
    "scheduled_date": "scheduled_date",
    "start_time": "start_time",
    "end_time": "end_time",
    "duration_minutes": "duration_minutes",
    "max_capacity": "max_capacity",
    "price": "price",
    "status": "status",
    "location": "location",
    "room": "room",
    "equipment_needed": "equipment_needed",
    "difficulty_level": "difficulty_level",
    "tags": "tags",
}


class ClassRepository(BaseRepository[FitnessClass]):
    """Repository for class instances."""

    def __init__(self, db: Session):
        super().__init__(db, FitnessClass)

    def update_fields(self, fitness_class: FitnessClass, fields: Mapping[str, Any]) -> FitnessClass:
        """Apply a typed partial update through the fixed column table."""
        unknown = set(fields) - set(CLASS_UPDATE_COLUMNS)
        if unknown:
            raise RepositoryException(f"Unknown class fields: {sorted(unknown)}")
        changes = {CLASS_UPDATE_COLUMNS[key]: value for key, value in fields.items()}
        return self.apply_changes(fitness_class, changes)

    def list_classes(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        instructor_id: Optional[str] = None,
        status: Optional[str] = None,
        class_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[FitnessClass]:
        """
        List classes ordered by date and start time.

        Args:
            start_date: Inclusive lower bound on scheduled_date
            end_date: Inclusive upper bound on scheduled_date
            instructor_id: Only this instructor's classes
            status: Only classes in this status
            class_type: Only classes of this type
            limit: Page size
            offset: Rows to skip
        """
        query = self._build_query()
        if start_date:
            query = query.filter(FitnessClass.scheduled_date >= start_date)
        if end_date:
            query = query.filter(FitnessClass.scheduled_date <= end_date)
        if instructor_id:
            query = query.filter(FitnessClass.instructor_id == instructor_id)
        if status:
            query = query.filter(FitnessClass.status == status)
        if class_type:
            query = query.filter(FitnessClass.class_type == class_type)

        query = query.order_by(FitnessClass.scheduled_date, FitnessClass.start_time, FitnessClass.id)
        return cast(List[FitnessClass], self._execute_query(query.offset(offset).limit(limit)))
