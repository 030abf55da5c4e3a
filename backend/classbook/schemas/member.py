# backend/classbook/schemas/member.py
"""Member schemas."""

from typing import Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class MemberResolveRequest(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)


class MemberResponse(StrictModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    status: str
