# backend/classbook/routes/__init__.py
"""HTTP routes. Business logic stays in the service layer."""

from typing import NoReturn

from ..core.exceptions import DomainException


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()
