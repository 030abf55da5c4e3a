# backend/classbook/models/member.py
"""Member model: one row per unique email address."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    EXPIRED = "expired"


class Member(Base):
    """
    A person who books classes.

    Email is the identity key: the unique constraint on it is what makes
    concurrent resolution of the same member converge on a single row.
    """

    __tablename__ = "members"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    status = Column(String(20), nullable=False, default=MemberStatus.ACTIVE.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="member")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'expired')",
            name="ck_members_status",
        ),
        UniqueConstraint("email", name="uq_members_email"),
    )

    def __repr__(self) -> str:
        return f"<Member {self.id}: {self.email}>"
