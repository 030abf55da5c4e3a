# backend/classbook/api/dependencies/database.py
"""
Database-related dependencies.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Get database session dependency.

    The session factory lives on ``app.state``; one session per request.

    Yields:
        Database session that will be closed after use
    """
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        # Services commit their own work; anything still open is abandoned
        db.close()
