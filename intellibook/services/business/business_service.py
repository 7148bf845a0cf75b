# intellibook/services/business/business_service.py
"""Business (tenant) creation and lookup"""
import logging
import re
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.core.exceptions import NotFoundError, StorageError, ValidationError
from intellibook.models.business import Business, BusinessSettings
from intellibook.utils.ids import coerce_uuid

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 50


def slugify_business_name(name: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", str(name or "").lower()).strip("-")
    return base or "business"


class BusinessService:
    """Handles business operations"""

    @staticmethod
    def get_business(db: Session, business_id) -> Business:
        business = db.query(Business).filter(
            Business.id == coerce_uuid(business_id, "Business")
        ).first()
        if not business:
            raise NotFoundError("Business not found")
        return business

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Business:
        business = db.query(Business).filter(Business.slug == str(slug or "")).first()
        if not business:
            raise NotFoundError("Business not found")
        return business

    @staticmethod
    def _available_slug(db: Session, base: str) -> str:
        """base, base-2, base-3, ... first one not taken"""
        candidate = base
        for attempt in range(2, MAX_SLUG_ATTEMPTS + 2):
            taken = db.query(Business.id).filter(Business.slug == candidate).first()
            if not taken:
                return candidate
            candidate = f"{base}-{attempt}"
        raise ValidationError("Could not allocate a unique booking link for this business name")

    @staticmethod
    def create_business(
            db: Session,
            ctx: BookingContext,
            name: str,
            owner_email: Optional[str] = None,
            timezone: Optional[str] = None
    ) -> Business:
        """Create a business and its settings row; slug is fixed from here on"""
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("name is required")
        if len(clean_name) > 200:
            raise ValidationError("name is too long (max 200 characters)")
        if owner_email and len(owner_email) > 320:
            raise ValidationError("owner_email is too long")

        app_settings = ctx.settings
        resolved_timezone = timezone or app_settings.DEFAULT_TIMEZONE
        slug = BusinessService._available_slug(db, slugify_business_name(clean_name))

        business = Business(
            name=clean_name,
            slug=slug,
            owner_email=owner_email or None,
            timezone=resolved_timezone,
        )
        business.settings = BusinessSettings(
            business_name=clean_name,
            owner_email=owner_email or None,
            timezone=resolved_timezone,
            open_time=app_settings.DEFAULT_OPEN_TIME,
            close_time=app_settings.DEFAULT_CLOSE_TIME,
            notify_owner_email=True,
        )

        try:
            db.add(business)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Slug collision while creating business '{clean_name}': {e}")
            raise ValidationError("A business with this booking link already exists, please retry")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create business '{clean_name}': {e}")
            raise StorageError("Could not create the business") from e

        db.refresh(business)
        logger.info(f"Created business {business.id} with slug '{business.slug}'")
        return business
