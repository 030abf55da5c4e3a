# backend/classbook/repositories/member_repository.py
"""Member Repository: lookups by email and contact updates."""

import logging
from typing import Optional, cast

from sqlalchemy.orm import Session

from ..models.member import Member
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MemberRepository(BaseRepository[Member]):
    def __init__(self, db: Session):
        super().__init__(db, Member)

    def get_by_email(self, email: str) -> Optional[Member]:
        """Exact, case-sensitive match on the stored email."""
        return cast(Optional[Member], self.find_one_by(email=email))
