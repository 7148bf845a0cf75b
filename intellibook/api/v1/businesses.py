# ============================================================================
# intellibook/api/v1/businesses.py
# Tenant creation
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from intellibook.api.dependencies import get_context, get_db
from intellibook.core.context import BookingContext
from intellibook.schemas.business import BusinessCreateRequest
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.post("", status_code=201)
def create_business(
        payload: BusinessCreateRequest,
        context: BookingContext = Depends(get_context),
        db: Session = Depends(get_db)
):
    """Create a business; the slug gets a numeric suffix if the name is taken."""
    business = BusinessService.create_business(
        db,
        context,
        name=payload.name,
        owner_email=payload.owner_email,
        timezone=payload.timezone,
    )
    types = []
    if context.settings.SEED_DEFAULT_TYPES:
        types = AppointmentTypeService.seed_defaults(db, business.id)
    return {"business": business.to_dict(), "types": types}
