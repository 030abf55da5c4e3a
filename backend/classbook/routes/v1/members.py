# backend/classbook/routes/v1/members.py
"""
Member routes - API v1

Endpoints:
    POST /resolve - Return the member with this email, creating it when absent
"""

from fastapi import APIRouter, Depends

from ...api.dependencies import get_member_resolver_service
from ...core.exceptions import DomainException
from ...schemas.member import MemberResolveRequest, MemberResponse
from ...services.member_resolver import MemberResolverService
from .. import handle_domain_exception

router = APIRouter(tags=["members-v1"])


@router.post("/resolve", response_model=MemberResponse)
def resolve_member(
    payload: MemberResolveRequest,
    resolver: MemberResolverService = Depends(get_member_resolver_service),
) -> MemberResponse:
    try:
        member = resolver.resolve_member(payload.name, payload.email, payload.phone)
        return MemberResponse.model_validate(member)
    except DomainException as e:
        handle_domain_exception(e)
