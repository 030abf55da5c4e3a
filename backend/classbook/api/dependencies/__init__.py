# backend/classbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .database import get_db
from .services import (
    get_booking_service,
    get_class_scheduler_service,
    get_clock,
    get_member_resolver_service,
    get_settings,
    get_statistics_service,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_class_scheduler_service",
    "get_clock",
    "get_member_resolver_service",
    "get_settings",
    "get_statistics_service",
]
