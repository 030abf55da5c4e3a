# backend/classbook/repositories/__init__.py
"""
Repository layer for the Classbook engine.

Repositories wrap all SQLAlchemy queries; services never build queries
themselves.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BOOKING_UPDATE_COLUMNS, BookingRepository
from .class_repository import CLASS_UPDATE_COLUMNS, ClassRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .member_repository import MemberRepository

__all__ = [
    "BOOKING_UPDATE_COLUMNS",
    "CLASS_UPDATE_COLUMNS",
    "BaseRepository",
    "BookingRepository",
    "ClassRepository",
    "ConflictCheckerRepository",
    "IRepository",
    "MemberRepository",
    "RepositoryFactory",
]
