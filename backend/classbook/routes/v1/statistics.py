# backend/classbook/routes/v1/statistics.py
"""
Statistics routes - API v1

Endpoints:
    GET /bookings - Booking counts and rates over a participation-date window
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_statistics_service
from ...core.exceptions import DomainException
from ...schemas.statistics import BookingStatistics
from ...services.statistics_service import StatisticsService
from .. import handle_domain_exception

router = APIRouter(tags=["statistics-v1"])


@router.get("/bookings", response_model=BookingStatistics)
def get_booking_statistics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    class_id: Optional[str] = Query(None),
    statistics: StatisticsService = Depends(get_statistics_service),
) -> BookingStatistics:
    try:
        return statistics.get_booking_statistics(
            start_date=start_date, end_date=end_date, class_id=class_id
        )
    except DomainException as e:
        handle_domain_exception(e)
