# backend/classbook/services/member_resolver.py
"""
Member Resolver Service.

Turns (name, email, phone) into a Member row, creating it on first sight.
Resolution is idempotent under concurrency: the insert runs inside a
SAVEPOINT, and when a concurrent request wins the unique email constraint the
savepoint is rolled back and the winner's row is returned.
"""

import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..core.time_windows import Clock
from ..models.member import Member, MemberStatus
from ..repositories import RepositoryFactory
from ..repositories.member_repository import MemberRepository
from .base import BaseService

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^\+?[1-9]\d{0,15}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_REGEX.match(email))


def is_valid_phone(phone: str) -> bool:
    """Loose international format once spaces, dashes and parentheses are removed."""
    return bool(PHONE_REGEX.match(_PHONE_SEPARATORS.sub("", phone)))


class MemberResolverService(BaseService):
    """Resolve-or-create members by email."""

    def __init__(
        self,
        db: Session,
        repository: Optional[MemberRepository] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock=clock)
        self.repository = repository or RepositoryFactory.create_member_repository(db)

    def _validate_contact(self, email: Optional[str] = None, phone: Optional[str] = None) -> None:
        if email is not None and not is_valid_email(email):
            raise ValidationException(
                "Invalid email format", code="MEMBER_INVALID_EMAIL", details={"email": email}
            )
        if phone and not is_valid_phone(phone):
            raise ValidationException(
                "Invalid phone number format",
                code="MEMBER_INVALID_PHONE",
                details={"phone": phone},
            )

    def resolve_in_transaction(self, name: str, email: str, phone: Optional[str] = None) -> Member:
        """
        Resolve a member inside the caller's open transaction.

        Used by booking creation so member resolution and the booking insert
        commit or roll back together.
        """
        existing = self.repository.get_by_email(email)
        if existing:
            return existing

        if not name:
            raise ValidationException("Member name is required", code="MEMBER_MISSING_FIELDS")
        self._validate_contact(email=email, phone=phone)

        try:
            with self.db.begin_nested():
                member = self.repository.create(
                    name=name,
                    email=email,
                    phone=phone or None,
                    status=MemberStatus.ACTIVE.value,
                )
        except IntegrityError:
            # Lost the race on the unique email; only the savepoint was undone
            winner = self.repository.get_by_email(email)
            if winner is None:
                raise
            self.logger.info(
                "Member created concurrently, reusing existing row",
                extra={"member_id": winner.id},
            )
            return winner

        self.logger.info("Created member", extra={"member_id": member.id})
        return member

    @BaseService.measure_operation("resolve_member")
    def resolve_member(self, name: str, email: str, phone: Optional[str] = None) -> Member:
        """
        Return the member with this email, creating it when absent.

        An existing member is returned unchanged; name and phone of the
        request are ignored for it.

        Raises:
            ValidationException: Malformed email or phone for a new member
        """
        self.log_operation("resolve_member", email=email)
        with self.transaction():
            return self.resolve_in_transaction(name, email, phone)

    @BaseService.measure_operation("get_member")
    def get_member(self, member_id: str) -> Member:
        with self.transaction():
            member = self.repository.get_by_id(member_id)
        if not member:
            raise NotFoundException(f"Member {member_id} not found", code="MEMBER_NOT_FOUND")
        return member

    @BaseService.measure_operation("get_member_by_email")
    def get_member_by_email(self, email: str) -> Member:
        with self.transaction():
            member = self.repository.get_by_email(email)
        if not member:
            raise NotFoundException("Member not found", code="MEMBER_NOT_FOUND", details={"email": email})
        return member

    def update_contact(
        self, member: Member, name: Optional[str] = None, phone: Optional[str] = None
    ) -> Member:
        """Overwrite name and/or phone inside the caller's transaction."""
        changes = {}
        if name is not None:
            changes["name"] = name
        if phone is not None:
            self._validate_contact(phone=phone)
            changes["phone"] = phone or None
        if changes:
            self.repository.apply_changes(member, changes)
        return member
