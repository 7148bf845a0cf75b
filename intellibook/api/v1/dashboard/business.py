# ============================================================================
# intellibook/api/v1/dashboard/business.py
# Settings and appointment type endpoints
# ============================================================================
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from intellibook.api.dependencies import get_business, get_context, get_db
from intellibook.core.context import BookingContext
from intellibook.models.business import Business
from intellibook.schemas.business import (
    AppointmentTypeCreate,
    AppointmentTypeUpdate,
    SettingsUpdateRequest,
)
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.settings_service import SettingsService

router = APIRouter(prefix="/{business_id}", tags=["dashboard-business"])


# ============================================================================
# Settings
# ============================================================================

@router.get("/settings")
def get_settings(
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    return {"settings": SettingsService.get_settings(db, context, business.id)}


@router.put("/settings")
def update_settings(
        payload: SettingsUpdateRequest,
        business: Business = Depends(get_business),
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """
    Update business settings. All fields are optional - only send what you
    want to change. Per-day hours must close after they open.
    """
    return {"settings": SettingsService.update_settings(db, context, business.id, payload)}


# ============================================================================
# Appointment types
# ============================================================================

@router.get("/types")
def list_types(
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    return {"types": AppointmentTypeService.list_active(db, business.id)}


@router.post("/types", status_code=201)
def create_type(
        payload: AppointmentTypeCreate,
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    return {"type": AppointmentTypeService.create_type(db, business.id, payload)}


@router.put("/types/{type_id}")
def update_type(
        payload: AppointmentTypeUpdate,
        type_id: str = Path(..., description="The appointment type ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    return {"type": AppointmentTypeService.update_type(db, business.id, type_id, payload)}


@router.delete("/types/{type_id}")
def deactivate_type(
        type_id: str = Path(..., description="The appointment type ID"),
        business: Business = Depends(get_business),
        db: Session = Depends(get_db)
):
    """Soft delete; past appointments keep their type."""
    return {"type": AppointmentTypeService.deactivate_type(db, business.id, type_id)}
