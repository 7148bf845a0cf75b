# ============================================================================
# intellibook/api/v1/public/booking.py
# Storefront endpoints - no authentication
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Optional

from intellibook.api.dependencies import get_context, get_db
from intellibook.core.context import BookingContext
from intellibook.schemas.appointment import AppointmentCreate, BookingResponse, ErrorResponse, SlotListResponse
from intellibook.services.appointment.appointment_service import AppointmentService
from intellibook.services.availability.availability_service import AvailabilityService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.storefront_service import StorefrontService

router = APIRouter(tags=["public-booking"])


@router.get("/{slug}")
def get_storefront(
        slug: str = Path(..., description="Business booking link"),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Business name, timezone, active appointment types and weekly hours."""
    return StorefrontService.get_storefront(db, context, slug)


@router.get("/{slug}/slots", response_model=SlotListResponse)
def list_public_slots(
        slug: str = Path(..., description="Business booking link"),
        date: str = Query(..., description="YYYY-MM-DD"),
        type_id: Optional[str] = Query(None, description="Appointment type to size slots by"),
        duration_minutes: Optional[int] = Query(None, description="Overrides the type duration"),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """
    Available start times for a date. Advisory only: the booking request
    re-checks under lock and may still return 409.
    """
    business = BusinessService.get_by_slug(db, slug)
    return AvailabilityService.list_slots(
        db,
        context,
        business.id,
        date,
        duration_minutes=duration_minutes,
        type_id=type_id,
    )


@router.post(
    "/{slug}/appointments",
    response_model=BookingResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
def create_public_appointment(
        payload: AppointmentCreate,
        slug: str = Path(..., description="Business booking link"),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Book a slot. The appointment starts out pending until the owner confirms it."""
    return AppointmentService.book_public_appointment(db, context, slug, payload)
