# backend/classbook/services/__init__.py
"""
Service layer for the Classbook engine.

Services own the transaction boundary and all business rules; each is built
around an injected SQLAlchemy session.
"""

from .base import BaseService
from .booking_service import BookingService
from .class_scheduler import ClassSchedulerService
from .conflict_checker import ConflictChecker
from .member_resolver import MemberResolverService
from .statistics_service import StatisticsService

__all__ = [
    "BaseService",
    "BookingService",
    "ClassSchedulerService",
    "ConflictChecker",
    "MemberResolverService",
    "StatisticsService",
]
