# backend/classbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Create a booking (member resolved by email)
    GET / - List bookings with filters and pagination
    GET /{booking_id} - Full booking details
    PATCH /{booking_id} - Partial update
    DELETE /{booking_id} - Delete a booking that was never attended
    POST /{booking_id}/cancel - Cancel a booking
    POST /{booking_id}/confirm - Confirm a pending booking
    POST /{booking_id}/attend - Mark booking as attended
    POST /{booking_id}/no-show - Mark booking as no-show
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...models.booking import BookingStatus
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingResponse,
    BookingUpdate,
)
from ...services.booking_service import BookingService
from .. import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def get_booking_filters(
    class_id: Optional[str] = Query(None),
    member_id: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    member_name: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> BookingFilters:
    return BookingFilters(
        class_id=class_id,
        member_id=member_id,
        status=booking_status,
        member_name=member_name,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Reserve a seat in a class for a member."""
    try:
        return BookingResponse.model_validate(booking_service.create_booking(booking_data))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    filters: BookingFilters = Depends(get_booking_filters),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        return [BookingResponse.model_validate(b) for b in booking_service.list_bookings(filters)]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.get_booking(booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    update_data: BookingUpdate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(
            booking_service.update_booking(booking_id, update_data)
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        booking_service.delete_booking(booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancel] = Body(None),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    cancel_data = cancel_data or BookingCancel()
    try:
        booking = booking_service.cancel_booking(
            booking_id, reason=cancel_data.reason, cancelled_by=cancel_data.cancelled_by
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.confirm_booking(booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/attend", response_model=BookingResponse)
def mark_attended(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.mark_attended(booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.model_validate(booking_service.mark_no_show(booking_id))
    except DomainException as e:
        handle_domain_exception(e)
