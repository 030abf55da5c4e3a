# backend/classbook/routes/v1/classes.py
"""
Class routes - API v1

Versioned class endpoints under /api/v1/classes.
All business logic delegated to ClassSchedulerService.

Endpoints:
    POST / - Schedule a class template over a date range (one class per day)
    GET / - List classes with filters and pagination
    GET /{class_id} - Class details
    PATCH /{class_id} - Partial update
    DELETE /{class_id} - Delete a future class without bookings
    GET /{class_id}/statistics - Booking statistics for the class
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import (
    get_class_scheduler_service,
    get_statistics_service,
)
from ...core.exceptions import DomainException
from ...models.fitness_class import ClassStatus
from ...schemas.fitness_class import ClassFilters, ClassResponse, ClassScheduleRequest, ClassUpdate
from ...schemas.statistics import ClassStatistics
from ...services.class_scheduler import ClassSchedulerService
from ...services.statistics_service import StatisticsService
from .. import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["classes-v1"])


def get_class_filters(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    instructor_id: Optional[str] = Query(None),
    class_status: Optional[ClassStatus] = Query(None, alias="status"),
    class_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ClassFilters:
    return ClassFilters(
        start_date=start_date,
        end_date=end_date,
        instructor_id=instructor_id,
        status=class_status,
        class_type=class_type,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=List[ClassResponse], status_code=status.HTTP_201_CREATED)
def schedule_classes(
    template: ClassScheduleRequest,
    scheduler: ClassSchedulerService = Depends(get_class_scheduler_service),
) -> List[ClassResponse]:
    """Create one class per day for the template's date range."""
    try:
        classes = scheduler.schedule_classes(template)
        return [ClassResponse.model_validate(c) for c in classes]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[ClassResponse])
def list_classes(
    filters: ClassFilters = Depends(get_class_filters),
    scheduler: ClassSchedulerService = Depends(get_class_scheduler_service),
) -> List[ClassResponse]:
    try:
        return [ClassResponse.model_validate(c) for c in scheduler.list_classes(filters)]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{class_id}", response_model=ClassResponse)
def get_class(
    class_id: str,
    scheduler: ClassSchedulerService = Depends(get_class_scheduler_service),
) -> ClassResponse:
    try:
        return ClassResponse.model_validate(scheduler.get_class(class_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{class_id}", response_model=ClassResponse)
def update_class(
    class_id: str,
    update: ClassUpdate,
    scheduler: ClassSchedulerService = Depends(get_class_scheduler_service),
) -> ClassResponse:
    try:
        return ClassResponse.model_validate(scheduler.update_class(class_id, update))
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: str,
    scheduler: ClassSchedulerService = Depends(get_class_scheduler_service),
) -> Response:
    try:
        scheduler.delete_class(class_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/statistics", response_model=ClassStatistics)
def get_class_statistics(
    class_id: str,
    statistics: StatisticsService = Depends(get_statistics_service),
) -> ClassStatistics:
    try:
        return statistics.get_class_statistics(class_id)
    except DomainException as e:
        handle_domain_exception(e)
