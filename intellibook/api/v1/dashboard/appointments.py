# ============================================================================
# intellibook/api/v1/dashboard/appointments.py
# Owner calendar endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session
from typing import Optional

from intellibook.api.dependencies import get_business, get_context, get_db
from intellibook.core.context import BookingContext
from intellibook.models.business import Business
from intellibook.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    BookingResponse,
    ErrorResponse,
    SlotListResponse,
)
from intellibook.services.appointment.appointment_query_service import AppointmentQueryService
from intellibook.services.appointment.appointment_service import AppointmentService
from intellibook.services.appointment.dashboard_service import DashboardService
from intellibook.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/{business_id}", tags=["dashboard-appointments"])


@router.get("/appointments")
def list_appointments(
        date: Optional[str] = Query(None, description="Only this day (YYYY-MM-DD)"),
        start_date: Optional[str] = Query(None, description="On or after this date"),
        end_date: Optional[str] = Query(None, description="On or before this date"),
        status: Optional[str] = Query(None, description="pending, confirmed, completed or cancelled"),
        q: Optional[str] = Query(None, description="Search client name, email or title"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=500, description="Number of records to return"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Get a list of appointments for the business, ordered by date and time."""
    return AppointmentQueryService.list_appointments(
        db=db,
        business_id=business.id,
        on_date=date,
        start_date=start_date,
        end_date=end_date,
        status=status,
        q=q,
        skip=skip,
        limit=limit
    )


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
        appointment_id: str = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    return AppointmentQueryService.get_appointment_by_id(db, business.id, appointment_id)


@router.post(
    "/appointments",
    response_model=BookingResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}}
)
def create_appointment(
        payload: AppointmentCreate,
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Owner booking; starts confirmed and may sit outside business hours."""
    return AppointmentService.create_appointment(db, context, business.id, payload)


@router.put(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    responses={409: {"model": ErrorResponse}}
)
def update_appointment(
        payload: AppointmentUpdate,
        appointment_id: str = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Edit or reschedule. Only the fields sent are changed."""
    return AppointmentService.update_appointment(db, context, business.id, appointment_id, payload)


@router.patch("/appointments/{appointment_id}/status", response_model=BookingResponse)
def update_appointment_status(
        payload: AppointmentStatusUpdate,
        appointment_id: str = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    return AppointmentService.update_status(db, context, business.id, appointment_id, payload.status)


@router.delete("/appointments/{appointment_id}", status_code=204)
def delete_appointment(
        appointment_id: str = Path(..., description="The appointment ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    AppointmentService.delete_appointment(db, business.id, appointment_id)
    return Response(status_code=204)


@router.get("/slots", response_model=SlotListResponse)
def preview_slots(
        date: str = Query(..., description="YYYY-MM-DD"),
        type_id: Optional[str] = Query(None),
        duration_minutes: Optional[int] = Query(None),
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Same listing the storefront shows, for the owner's calendar."""
    return AvailabilityService.list_slots(
        db, context, business.id, date, duration_minutes=duration_minutes, type_id=type_id
    )


@router.get("/overview")
def get_overview(
        date: Optional[str] = Query(None, description="Focus date (YYYY-MM-DD), defaults to today"),
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Day and week counts, pending backlog, the day's calendar, types and insights."""
    return DashboardService.get_overview(db, context, business.id, date)
