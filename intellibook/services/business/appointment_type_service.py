# intellibook/services/business/appointment_type_service.py
"""Appointment type (service catalogue) management"""
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from intellibook.core.exceptions import NotFoundError, StorageError, ValidationError
from intellibook.models.appointment_type import AppointmentType, LocationMode, TYPE_COLORS
from intellibook.schemas.business import AppointmentTypeCreate, AppointmentTypeUpdate
from intellibook.utils.ids import coerce_uuid

logger = logging.getLogger(__name__)

LOCATION_MODES = [mode.value for mode in LocationMode]


def _validate_type_fields(duration_minutes=None, price_cents=None, location_mode=None):
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValidationError("duration_minutes must be greater than 0")
    if price_cents is not None and price_cents < 0:
        raise ValidationError("price_cents cannot be negative")
    if location_mode is not None and location_mode not in LOCATION_MODES:
        raise ValidationError(f"location_mode must be one of: {', '.join(LOCATION_MODES)}")


class AppointmentTypeService:
    """Create, edit and soft-delete appointment types"""

    @staticmethod
    def list_active(db: Session, business_id) -> List[Dict[str, Any]]:
        types = db.query(AppointmentType).filter(
            AppointmentType.business_id == coerce_uuid(business_id, "Business"),
            AppointmentType.active == True,  # noqa: E712
        ).order_by(AppointmentType.created_at.asc(), AppointmentType.name.asc()).all()
        return [t.to_dict() for t in types]

    @staticmethod
    def _get(db: Session, business_id, type_id) -> AppointmentType:
        appointment_type = db.query(AppointmentType).filter(
            AppointmentType.id == coerce_uuid(type_id, "Appointment type"),
            AppointmentType.business_id == coerce_uuid(business_id, "Business"),
        ).first()
        if not appointment_type:
            raise NotFoundError("Appointment type not found")
        return appointment_type

    @staticmethod
    def _commit(db: Session, action: str):
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action} appointment type: {e}")
            raise StorageError(f"Could not {action} the appointment type") from e

    @staticmethod
    def create_type(db: Session, business_id, payload: AppointmentTypeCreate) -> Dict[str, Any]:
        business_id = coerce_uuid(business_id, "Business")
        _validate_type_fields(payload.duration_minutes, payload.price_cents, payload.location_mode)

        existing_count = db.query(AppointmentType).filter(
            AppointmentType.business_id == business_id
        ).count()

        appointment_type = AppointmentType(
            business_id=business_id,
            name=payload.name.strip(),
            duration_minutes=payload.duration_minutes,
            price_cents=payload.price_cents,
            location_mode=payload.location_mode,
            color=payload.color or TYPE_COLORS[existing_count % len(TYPE_COLORS)],
            active=True,
        )
        db.add(appointment_type)
        AppointmentTypeService._commit(db, "create")
        db.refresh(appointment_type)

        logger.info(f"Created appointment type {appointment_type.id} for business {business_id}")
        return appointment_type.to_dict()

    @staticmethod
    def update_type(db: Session, business_id, type_id, payload: AppointmentTypeUpdate) -> Dict[str, Any]:
        appointment_type = AppointmentTypeService._get(db, business_id, type_id)
        update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
        _validate_type_fields(
            update_data.get("duration_minutes"),
            update_data.get("price_cents"),
            update_data.get("location_mode"),
        )

        for field_name, value in update_data.items():
            setattr(appointment_type, field_name, value.strip() if field_name == "name" else value)

        AppointmentTypeService._commit(db, "update")
        db.refresh(appointment_type)
        return appointment_type.to_dict()

    @staticmethod
    def deactivate_type(db: Session, business_id, type_id) -> Dict[str, Any]:
        """Soft delete: existing appointments keep their reference"""
        appointment_type = AppointmentTypeService._get(db, business_id, type_id)
        appointment_type.active = False
        AppointmentTypeService._commit(db, "deactivate")
        db.refresh(appointment_type)
        logger.info(f"Deactivated appointment type {appointment_type.id}")
        return appointment_type.to_dict()

    @staticmethod
    def seed_defaults(db: Session, business_id) -> List[Dict[str, Any]]:
        """Starter catalogue for a new business with no types yet"""
        business_id = coerce_uuid(business_id, "Business")
        if db.query(AppointmentType).filter(AppointmentType.business_id == business_id).count():
            return AppointmentTypeService.list_active(db, business_id)

        defaults = [
            ("Consultation", 45, 15000, LocationMode.OFFICE),
            ("Strategy Session", 90, 30000, LocationMode.HYBRID),
            ("Review", 60, 20000, LocationMode.VIRTUAL),
            ("Follow-up Call", 15, 0, LocationMode.PHONE),
        ]
        for index, (name, duration, price, mode) in enumerate(defaults):
            db.add(AppointmentType(
                business_id=business_id,
                name=name,
                duration_minutes=duration,
                price_cents=price,
                location_mode=mode.value,
                color=TYPE_COLORS[index % len(TYPE_COLORS)],
                active=True,
            ))
        AppointmentTypeService._commit(db, "seed")
        return AppointmentTypeService.list_active(db, business_id)
