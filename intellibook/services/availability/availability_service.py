# ===== intellibook/services/availability/availability_service.py =====
from typing import List, Dict, Optional
from datetime import date
from sqlalchemy.orm import Session
from intellibook.core.context import BookingContext
from intellibook.core.exceptions import NotFoundError, ValidationError
from intellibook.services.appointment.appointment_store import AppointmentStore
from intellibook.services.appointment.overlap_guard import blockers_from
from intellibook.services.availability.business_hours_service import BusinessHoursService
from intellibook.utils.ids import optional_uuid
from intellibook.utils.time_utils import format_minutes, parse_date_strict, parse_time_strict
import logging

logger = logging.getLogger(__name__)

# Presentation grid for public slots, independent of service duration
PUBLIC_SLOT_INTERVAL_MINUTES = 15


class AvailabilityService:
    """Bookable start times for a business and date"""

    @staticmethod
    def get_available_slots(
            db: Session,
            business_id,
            appointment_date: date,
            duration_minutes: int,
            open_time: str,
            close_time: str
    ) -> List[str]:
        """
        Enumerate grid-aligned start times inside [open_time, close_time)
        that overlap no non-cancelled appointment.

        Output is ascending HH:MM strings and depends only on the inputs
        and the stored appointments.
        """
        requested_duration = int(duration_minutes or 0)
        if requested_duration <= 0:
            raise ValidationError("duration_minutes must be greater than 0")

        window_start = parse_time_strict(open_time)
        window_end = parse_time_strict(close_time)
        if window_end <= window_start:
            raise ValidationError("Close time must be later than open time")

        # Load the day once
        rows = AppointmentStore(db).fetch_appointments(business_id, appointment_date)
        booked_slots = blockers_from(rows)

        slots = []
        slot_start = window_start
        while slot_start + requested_duration <= window_end:
            slot_end = slot_start + requested_duration

            if not any(blocker.overlaps(slot_start, slot_end) for blocker in booked_slots):
                slots.append(format_minutes(slot_start))

            slot_start += PUBLIC_SLOT_INTERVAL_MINUTES

        return slots

    @staticmethod
    def resolve_duration(
            db: Session,
            ctx: BookingContext,
            business_id,
            duration_minutes: Optional[int] = None,
            type_id=None
    ) -> int:
        """Explicit duration wins, then the type's duration, then the default"""
        appointment_type = None
        if type_id:
            appointment_type = AppointmentStore(db).find_active_type(
                business_id, optional_uuid(type_id, "Appointment type")
            )
            if appointment_type is None:
                raise NotFoundError("Appointment type not found")

        if duration_minutes is not None:
            return int(duration_minutes)
        if appointment_type is not None:
            return int(appointment_type.duration_minutes)
        return ctx.settings.DEFAULT_APPOINTMENT_DURATION

    @staticmethod
    def list_slots(
            db: Session,
            ctx: BookingContext,
            business_id,
            date_value,
            duration_minutes: Optional[int] = None,
            type_id=None
    ) -> Dict:
        """Slot listing for the storefront and the owner's preview"""
        appointment_date = parse_date_strict(date_value)
        requested_duration = AvailabilityService.resolve_duration(
            db, ctx, business_id, duration_minutes, type_id
        )
        if requested_duration <= 0:
            raise ValidationError("duration_minutes must be greater than 0")

        hours = BusinessHoursService.resolve_for_business(db, ctx.settings, business_id, appointment_date)

        if hours.closed:
            available = []
        else:
            available = AvailabilityService.get_available_slots(
                db,
                business_id,
                appointment_date,
                requested_duration,
                hours.open_time,
                hours.close_time,
            )

        logger.debug(
            f"{len(available)} slots for business {business_id} on {appointment_date} "
            f"({requested_duration}m, {hours.day_key})"
        )

        return {
            "date": appointment_date.isoformat(),
            "duration_minutes": requested_duration,
            "slot_interval_minutes": PUBLIC_SLOT_INTERVAL_MINUTES,
            "day_key": hours.day_key,
            "closed": hours.closed,
            "open_time": hours.open_time,
            "close_time": hours.close_time,
            "available_slots": available,
        }
