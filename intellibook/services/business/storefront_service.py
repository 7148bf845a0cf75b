# intellibook/services/business/storefront_service.py
"""Public storefront data for a business slug"""
from typing import Any, Dict

from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.settings_service import SettingsService, settings_to_dict


class StorefrontService:

    @staticmethod
    def get_storefront(db: Session, ctx: BookingContext, slug: str) -> Dict[str, Any]:
        business = BusinessService.get_by_slug(db, slug)
        settings_data = settings_to_dict(SettingsService.get_or_create(db, ctx, business))
        return {
            "business": {
                "name": settings_data["business_name"],
                "slug": business.slug,
                "timezone": settings_data["timezone"],
            },
            "types": AppointmentTypeService.list_active(db, business.id),
            "business_hours": settings_data["business_hours"],
        }
