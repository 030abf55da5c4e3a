# backend/classbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...core.config import Settings
from ...core.time_windows import Clock
from ...services.booking_service import BookingService
from ...services.class_scheduler import ClassSchedulerService
from ...services.member_resolver import MemberResolverService
from ...services.statistics_service import StatisticsService
from .database import get_db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_class_scheduler_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> ClassSchedulerService:
    return ClassSchedulerService(db, clock=clock, settings=settings)


def get_booking_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        clock: "today" provider configured on the app
        settings: Application settings

    Returns:
        BookingService instance
    """
    return BookingService(db, clock=clock, settings=settings)


def get_member_resolver_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> MemberResolverService:
    return MemberResolverService(db, clock=clock)


def get_statistics_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> StatisticsService:
    return StatisticsService(db, clock=clock, settings=settings)
