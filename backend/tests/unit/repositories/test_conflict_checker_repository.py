"""Row locking in ConflictCheckerRepository.get_instructor."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import Session

from classbook.repositories.conflict_checker_repository import ConflictCheckerRepository

MODULE = "classbook.repositories.conflict_checker_repository"


@pytest.fixture
def db():
    session = MagicMock(spec=Session)
    query = session.query.return_value.filter.return_value
    query.with_for_update.return_value = query
    return session


def test_plain_lookup_takes_no_lock(db):
    with patch(f"{MODULE}.supports_row_locks", return_value=True):
        ConflictCheckerRepository(db).get_instructor("inst-1")

    db.query.return_value.filter.return_value.with_for_update.assert_not_called()


def test_locked_lookup_uses_select_for_update(db):
    query = db.query.return_value.filter.return_value
    query.first.return_value = "instructor"

    with patch(f"{MODULE}.supports_row_locks", return_value=True):
        result = ConflictCheckerRepository(db).get_instructor("inst-1", for_update=True)

    query.with_for_update.assert_called_once_with()
    assert result == "instructor"


def test_lock_skipped_without_row_lock_support(db):
    with patch(f"{MODULE}.supports_row_locks", return_value=False):
        ConflictCheckerRepository(db).get_instructor("inst-1", for_update=True)

    db.query.return_value.filter.return_value.with_for_update.assert_not_called()
