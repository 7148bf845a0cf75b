# intellibook/services/business/settings_service.py
"""Per-business settings: created lazily, updated partially"""
import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.core.exceptions import StorageError, ValidationError
from intellibook.models.business import Business, BusinessSettings
from intellibook.schemas.business import SettingsUpdateRequest
from intellibook.services.availability.business_hours_service import BusinessHoursService
from intellibook.services.business.business_service import BusinessService
from intellibook.utils.time_utils import normalize_time, parse_time_strict

logger = logging.getLogger(__name__)


def settings_to_dict(settings_row: BusinessSettings) -> Dict[str, Any]:
    week = BusinessHoursService.resolve_week(
        settings_row.business_hours, settings_row.open_time, settings_row.close_time
    )
    return {
        "business_id": str(settings_row.business_id),
        "business_name": settings_row.business_name,
        "owner_email": settings_row.owner_email,
        "timezone": settings_row.timezone,
        "open_time": settings_row.open_time,
        "close_time": settings_row.close_time,
        "business_hours": {key: day.to_dict() for key, day in week.items()},
        "notify_owner_email": bool(settings_row.notify_owner_email),
    }


class SettingsService:
    """Business settings operations"""

    @staticmethod
    def get_or_create(db: Session, ctx: BookingContext, business: Business) -> BusinessSettings:
        settings_row = db.query(BusinessSettings).filter(
            BusinessSettings.business_id == business.id
        ).first()
        if settings_row:
            return settings_row

        settings_row = BusinessSettings(
            business_id=business.id,
            business_name=business.name,
            owner_email=business.owner_email,
            timezone=business.timezone,
            open_time=ctx.settings.DEFAULT_OPEN_TIME,
            close_time=ctx.settings.DEFAULT_CLOSE_TIME,
            notify_owner_email=True,
        )
        try:
            db.add(settings_row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create settings for business {business.id}: {e}")
            raise StorageError("Could not load business settings") from e
        db.refresh(settings_row)
        logger.info(f"Created settings row for business {business.id}")
        return settings_row

    @staticmethod
    def get_settings(db: Session, ctx: BookingContext, business_id) -> Dict[str, Any]:
        business = BusinessService.get_business(db, business_id)
        return settings_to_dict(SettingsService.get_or_create(db, ctx, business))

    @staticmethod
    def update_settings(
            db: Session,
            ctx: BookingContext,
            business_id,
            payload: SettingsUpdateRequest
    ) -> Dict[str, Any]:
        """
        Apply a partial update. The global window must close after it opens;
        per-day hours are validated strictly before anything is written.
        """
        business = BusinessService.get_business(db, business_id)
        settings_row = SettingsService.get_or_create(db, ctx, business)
        fields = payload.model_fields_set

        open_time = settings_row.open_time
        close_time = settings_row.close_time
        if "open_time" in fields and payload.open_time is not None:
            open_time = normalize_time(payload.open_time)
        if "close_time" in fields and payload.close_time is not None:
            close_time = normalize_time(payload.close_time)
        if parse_time_strict(close_time) <= parse_time_strict(open_time):
            raise ValidationError("Close time must be later than open time")

        business_hours = settings_row.business_hours
        if "business_hours" in fields and payload.business_hours is not None:
            raw = {
                key.lower(): day.model_dump()
                for key, day in payload.business_hours.items()
            }
            business_hours = BusinessHoursService.normalize_week(raw, open_time, close_time)

        try:
            settings_row.open_time = open_time
            settings_row.close_time = close_time
            settings_row.business_hours = business_hours
            if "business_name" in fields and payload.business_name:
                settings_row.business_name = payload.business_name.strip()
                business.name = settings_row.business_name
            if "owner_email" in fields:
                settings_row.owner_email = payload.owner_email or None
                business.owner_email = settings_row.owner_email
            if "timezone" in fields and payload.timezone:
                settings_row.timezone = payload.timezone
                business.timezone = payload.timezone
            if "notify_owner_email" in fields and payload.notify_owner_email is not None:
                settings_row.notify_owner_email = payload.notify_owner_email
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update settings for business {business.id}: {e}")
            raise StorageError("Could not save settings") from e

        db.refresh(settings_row)
        logger.info(f"Updated settings for business {business.id}: {sorted(fields)}")
        return settings_to_dict(settings_row)
