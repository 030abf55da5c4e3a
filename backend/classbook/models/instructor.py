# backend/classbook/models/instructor.py
"""
Instructor model.

Instructors are owned by the studio's staff tooling; the engine only reads
them to decide whether a class may be scheduled.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class InstructorStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Instructor(Base):
    __tablename__ = "instructors"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(32), nullable=True)
    specialization = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=InstructorStatus.ACTIVE.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    classes = relationship("FitnessClass", back_populates="instructor")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')",
            name="ck_instructors_status",
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == InstructorStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Instructor {self.id}: {self.name} ({self.status})>"
