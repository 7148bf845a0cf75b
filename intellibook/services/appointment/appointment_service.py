# ============================================================================
# intellibook/services/appointment/appointment_service.py
# ============================================================================
"""
Transactional appointment writer.

Every create, reschedule and reactivation follows the same sequence:
validate (no storage access), resolve type defaults, take the
(business, date) booking lock, re-check overlap, write, commit. Any
failure inside the locked section rolls the whole transaction back.
Notifications run after commit and can never fail the booking.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.core.exceptions import NotFoundError, SchedulingError, StorageError, ValidationError
from intellibook.models.appointment import Appointment, AppointmentSource, AppointmentStatus
from intellibook.models.appointment_type import AppointmentType
from intellibook.models.business import Business
from intellibook.schemas.appointment import AppointmentCreate, AppointmentUpdate
from intellibook.services.appointment.appointment_store import AppointmentStore
from intellibook.services.appointment.overlap_guard import OverlapGuard
from intellibook.services.availability.business_hours_service import BusinessHoursService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.notification.notification_service import NotificationSummary, Recipients
from intellibook.utils.ids import coerce_uuid, optional_uuid
from intellibook.utils.time_utils import (
    format_minutes,
    parse_date_strict,
    parse_time_lenient,
    parse_time_strict,
)

logger = logging.getLogger(__name__)

MAX_CLIENT_NAME_LENGTH = 200
MAX_CLIENT_EMAIL_LENGTH = 320
MAX_NOTES_LENGTH = 5000
MAX_TITLE_LENGTH = 500
MAX_LOCATION_LENGTH = 100
DEFAULT_LOCATION = "office"

ALLOWED_STATUSES = [s.value for s in AppointmentStatus]


@dataclass
class BookingDraft:
    """A request that passed field validation; nothing has touched storage yet"""
    client_name: str
    client_email: Optional[str]
    title: Optional[str]
    notes: Optional[str]
    location: Optional[str]
    appointment_date: date
    start_minutes: int
    duration_minutes: Optional[int]
    type_id: Optional[UUID]

    @property
    def time(self) -> str:
        return format_minutes(self.start_minutes)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_client_name(client_name) -> str:
    name = str(client_name or "").strip()
    if not name:
        raise ValidationError("client_name is required")
    if len(name) > MAX_CLIENT_NAME_LENGTH:
        raise ValidationError(f"client_name is too long (max {MAX_CLIENT_NAME_LENGTH} characters)")
    return name


def _validate_lengths(client_email, notes, title, location):
    if client_email and len(client_email) > MAX_CLIENT_EMAIL_LENGTH:
        raise ValidationError("client_email is too long")
    if notes and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"notes is too long (max {MAX_NOTES_LENGTH} characters)")
    if title and len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"title is too long (max {MAX_TITLE_LENGTH} characters)")
    if location and len(location) > MAX_LOCATION_LENGTH:
        raise ValidationError(f"location is too long (max {MAX_LOCATION_LENGTH} characters)")


def _validate_duration(duration_minutes) -> Optional[int]:
    if duration_minutes is None:
        return None
    if int(duration_minutes) <= 0:
        raise ValidationError("duration_minutes must be greater than 0")
    return int(duration_minutes)


class AppointmentService:
    """Handles appointment writes"""

    # ------------------------------------------------------------------
    # Validation and resolution
    # ------------------------------------------------------------------

    @staticmethod
    def validate_request(payload: AppointmentCreate) -> BookingDraft:
        """Field checks only; raises before any storage access"""
        client_name = _validate_client_name(payload.client_name)
        client_email = _clean_optional(payload.client_email)
        notes = _clean_optional(payload.notes)
        title = _clean_optional(payload.title)
        location = _clean_optional(payload.location)
        _validate_lengths(client_email, notes, title, location)

        if not payload.date:
            raise ValidationError("date is required")
        if not payload.time:
            raise ValidationError("time is required")
        appointment_date = parse_date_strict(payload.date)
        start_minutes = parse_time_strict(payload.time)

        return BookingDraft(
            client_name=client_name,
            client_email=client_email,
            title=title,
            notes=notes,
            location=location,
            appointment_date=appointment_date,
            start_minutes=start_minutes,
            duration_minutes=_validate_duration(payload.duration_minutes),
            type_id=optional_uuid(payload.type_id, "Appointment type"),
        )

    @staticmethod
    def _resolve_type(store: AppointmentStore, business_id, type_id) -> Optional[AppointmentType]:
        if type_id is None:
            return None
        appointment_type = store.find_active_type(business_id, type_id)
        if appointment_type is None:
            raise NotFoundError("Appointment type not found")
        return appointment_type

    @staticmethod
    def _recipients(store: AppointmentStore, business: Business) -> Recipients:
        settings_row = store.get_settings(business.id)
        if settings_row is None:
            return Recipients(business_name=business.name, owner_email=business.owner_email)
        return Recipients(
            business_name=settings_row.business_name or business.name,
            owner_email=settings_row.owner_email,
            notify_owner=settings_row.notify_owner_email is None or bool(settings_row.notify_owner_email),
        )

    # ------------------------------------------------------------------
    # Locked write
    # ------------------------------------------------------------------

    @staticmethod
    def _locked_write(
            db: Session,
            ctx: BookingContext,
            business_id,
            appointment_date: date,
            start_minutes: int,
            duration_minutes: int,
            write: Callable[[], Any],
            exclude_id=None,
            check_overlap: bool = True
    ) -> Any:
        """
        Overlap re-check and write as one unit for (business, date).

        The lock is held until the commit finishes; on any error the
        session is rolled back and nothing from this write survives.
        """
        try:
            with ctx.booking_lock.hold(db, business_id, appointment_date):
                if check_overlap:
                    OverlapGuard.assert_no_overlap(
                        db,
                        business_id,
                        appointment_date,
                        start_minutes,
                        duration_minutes,
                        exclude_id=exclude_id,
                    )
                result = write()
                db.commit()
                return result
        except SchedulingError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Appointment write failed for business {business_id} on {appointment_date}: {e}")
            raise StorageError() from e

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @staticmethod
    def _create(
            db: Session,
            ctx: BookingContext,
            business: Business,
            draft: BookingDraft,
            source: AppointmentSource
    ) -> Dict[str, Any]:
        store = AppointmentStore(db)
        appointment_type = AppointmentService._resolve_type(store, business.id, draft.type_id)

        duration = draft.duration_minutes
        if duration is None:
            duration = (
                appointment_type.duration_minutes
                if appointment_type is not None
                else ctx.settings.DEFAULT_APPOINTMENT_DURATION
            )
        duration = _validate_duration(duration)

        if source == AppointmentSource.PUBLIC:
            hours = BusinessHoursService.resolve_from_settings(
                ctx.settings, store.get_settings(business.id), draft.appointment_date
            )
            BusinessHoursService.assert_bookable(hours, draft.start_minutes, duration)

        status = (
            AppointmentStatus.PENDING if source == AppointmentSource.PUBLIC
            else AppointmentStatus.CONFIRMED
        )
        record = {
            "business_id": business.id,
            "type_id": appointment_type.id if appointment_type else None,
            "title": draft.title or (appointment_type.name if appointment_type else "Appointment"),
            "client_name": draft.client_name,
            "client_email": draft.client_email,
            "date": draft.appointment_date,
            "time": draft.time,
            "duration_minutes": duration,
            "location": draft.location or (
                appointment_type.location_mode if appointment_type else DEFAULT_LOCATION
            ),
            "notes": draft.notes,
            "status": status.value,
            "source": source.value,
        }

        appointment_id = AppointmentService._locked_write(
            db,
            ctx,
            business.id,
            draft.appointment_date,
            draft.start_minutes,
            duration,
            write=lambda: store.insert_appointment(record),
        )

        appointment = store.get_appointment(business.id, appointment_id)
        snapshot = appointment.to_dict()
        logger.info(
            f"Booked appointment {appointment_id} for business {business.id} "
            f"on {snapshot['date']} {snapshot['time']} ({source.value}, {status.value})"
        )

        notifications = ctx.notifier.booking_created(
            snapshot, AppointmentService._recipients(store, business)
        )
        return {"appointment": snapshot, "notifications": notifications.to_dict()}

    @staticmethod
    def create_appointment(
            db: Session,
            ctx: BookingContext,
            business_id,
            payload: AppointmentCreate,
            source: AppointmentSource = AppointmentSource.OWNER
    ) -> Dict[str, Any]:
        """
        Create an appointment for a business.

        Returns:
            {"appointment": {...}, "notifications": {"mode": str, "sent": int}}

        Raises:
            FormatError, ValidationError, NotFoundError, OverlapError, StorageError
        """
        draft = AppointmentService.validate_request(payload)
        business = BusinessService.get_business(db, business_id)
        return AppointmentService._create(db, ctx, business, draft, AppointmentSource(source))

    @staticmethod
    def book_public_appointment(
            db: Session,
            ctx: BookingContext,
            slug: str,
            payload: AppointmentCreate
    ) -> Dict[str, Any]:
        """Storefront booking: starts pending and must fit the day's business hours"""
        draft = AppointmentService.validate_request(payload)
        business = BusinessService.get_by_slug(db, slug)
        return AppointmentService._create(db, ctx, business, draft, AppointmentSource.PUBLIC)

    # ------------------------------------------------------------------
    # Edit / reschedule
    # ------------------------------------------------------------------

    @staticmethod
    def _get_existing(store: AppointmentStore, business_id, appointment_id) -> Appointment:
        appointment = store.get_appointment(business_id, coerce_uuid(appointment_id, "Appointment"))
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def update_appointment(
            db: Session,
            ctx: BookingContext,
            business_id,
            appointment_id,
            payload: AppointmentUpdate
    ) -> Dict[str, Any]:
        """
        Apply the fields present in payload. A non-cancelled appointment is
        re-checked for overlap on its (possibly new) date, excluding itself.
        """
        fields = payload.model_fields_set
        business_id = coerce_uuid(business_id, "Business")

        # Format checks first, before reading anything
        new_date = parse_date_strict(payload.date) if "date" in fields else None
        new_start = parse_time_strict(payload.time) if "time" in fields else None
        new_duration = _validate_duration(payload.duration_minutes) if "duration_minutes" in fields else None
        new_type_id = optional_uuid(payload.type_id, "Appointment type") if "type_id" in fields else None

        store = AppointmentStore(db)
        existing = AppointmentService._get_existing(store, business_id, appointment_id)

        client_name = (
            _validate_client_name(payload.client_name) if "client_name" in fields else existing.client_name
        )
        client_email = _clean_optional(payload.client_email) if "client_email" in fields else existing.client_email
        notes = _clean_optional(payload.notes) if "notes" in fields else existing.notes
        title = _clean_optional(payload.title) if "title" in fields else existing.title
        location = _clean_optional(payload.location) if "location" in fields else existing.location
        _validate_lengths(client_email, notes, title, location)

        appointment_type = None
        type_id = existing.type_id
        if "type_id" in fields:
            appointment_type = AppointmentService._resolve_type(store, business_id, new_type_id)
            type_id = appointment_type.id if appointment_type else None

        if new_duration is not None:
            duration = new_duration
        elif appointment_type is not None:
            duration = appointment_type.duration_minutes
        else:
            duration = existing.duration_minutes

        if "location" not in fields and appointment_type is not None:
            location = appointment_type.location_mode

        appointment_date = new_date or existing.date
        start_minutes = new_start if new_start is not None else parse_time_lenient(existing.time)

        record = {
            "type_id": type_id,
            "title": title,
            "client_name": client_name,
            "client_email": client_email,
            "date": appointment_date,
            "time": format_minutes(start_minutes),
            "duration_minutes": duration,
            "location": location or DEFAULT_LOCATION,
            "notes": notes,
        }

        def write():
            affected = store.update_appointment(existing.id, business_id, record)
            if not affected:
                raise NotFoundError("Appointment not found")
            return affected

        AppointmentService._locked_write(
            db,
            ctx,
            business_id,
            appointment_date,
            start_minutes,
            duration,
            write=write,
            exclude_id=existing.id,
            check_overlap=existing.status != AppointmentStatus.CANCELLED.value,
        )

        db.expire_all()
        appointment = store.get_appointment(business_id, existing.id)
        logger.info(f"Updated appointment {existing.id} for business {business_id}")
        return appointment.to_dict()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @staticmethod
    def update_status(
            db: Session,
            ctx: BookingContext,
            business_id,
            appointment_id,
            status: str
    ) -> Dict[str, Any]:
        """
        Set status to any of the four values; no transition table is
        enforced. Leaving 'cancelled' puts the interval back on the
        calendar, so that move goes through the locked overlap check.
        """
        if status not in ALLOWED_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(ALLOWED_STATUSES)}")

        business = BusinessService.get_business(db, business_id)
        store = AppointmentStore(db)
        existing = AppointmentService._get_existing(store, business.id, appointment_id)

        reactivating = (
            existing.status == AppointmentStatus.CANCELLED.value
            and status != AppointmentStatus.CANCELLED.value
        )

        def write():
            affected = store.update_appointment(existing.id, business.id, {"status": status})
            if not affected:
                raise NotFoundError("Appointment not found")
            return affected

        AppointmentService._locked_write(
            db,
            ctx,
            business.id,
            existing.date,
            parse_time_lenient(existing.time),
            existing.duration_minutes,
            write=write,
            exclude_id=existing.id,
            check_overlap=reactivating,
        )

        db.expire_all()
        snapshot = store.get_appointment(business.id, existing.id).to_dict()
        logger.info(f"Appointment {existing.id} status -> {status}")

        notifications: NotificationSummary = ctx.notifier.status_changed(
            snapshot, AppointmentService._recipients(store, business)
        )
        return {"appointment": snapshot, "notifications": notifications.to_dict()}

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @staticmethod
    def delete_appointment(db: Session, business_id, appointment_id) -> None:
        """Owner deletion; the only path that physically removes a row"""
        store = AppointmentStore(db)
        existing = AppointmentService._get_existing(
            store, coerce_uuid(business_id, "Business"), appointment_id
        )
        try:
            db.delete(existing)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete appointment {existing.id}: {e}")
            raise StorageError("Could not delete the appointment") from e
        logger.info(f"Deleted appointment {existing.id}")
