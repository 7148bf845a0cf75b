from datetime import date

import pytest

from intellibook.core.context import BookingContext
from intellibook.core.exceptions import FormatError, NotFoundError, ValidationError
from intellibook.schemas.business import DayHoursSchema, SettingsUpdateRequest
from intellibook.services.appointment.appointment_service import AppointmentService
from intellibook.services.availability.availability_service import AvailabilityService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.settings_service import SettingsService
from tests.conftest import MONDAY, SUNDAY


class TestGetAvailableSlots:

    def test_empty_day_fills_window(self, db, business):
        slots = AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), 45, "09:00", "18:00")
        assert slots[0] == "09:00"
        assert slots[-1] == "17:15"
        assert len(slots) == 34
        assert slots == sorted(slots)

    def test_existing_booking_removes_overlapping_starts(self, db, context, business, booking):
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))

        slots = AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), 45, "09:00", "18:00")

        for taken in ("09:30", "09:45", "10:00", "10:15", "10:30"):
            assert taken not in slots
        for free in ("09:00", "09:15", "10:45", "11:00"):
            assert free in slots
        assert slots[-1] == "17:15"

    def test_cancelled_booking_frees_its_slots(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        AppointmentService.update_status(db, context, business.id, created["appointment"]["id"], "cancelled")

        slots = AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), 45, "09:00", "18:00")
        assert "10:00" in slots

    def test_duration_longer_than_window(self, db, business):
        assert AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), 120, "09:00", "10:00") == []

    @pytest.mark.parametrize("duration", [0, -15])
    def test_rejects_non_positive_duration(self, db, business, duration):
        with pytest.raises(ValidationError):
            AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), duration, "09:00", "18:00")

    def test_rejects_inverted_window(self, db, business):
        with pytest.raises(ValidationError):
            AvailabilityService.get_available_slots(db, business.id, date(2026, 10, 19), 45, "18:00", "09:00")


class TestListSlots:

    def test_uses_type_duration(self, db, context, business, make_type):
        review = make_type(name="Review", duration_minutes=60)

        result = AvailabilityService.list_slots(db, context, business.id, MONDAY, type_id=review["id"])

        assert result["duration_minutes"] == 60
        assert result["day_key"] == "mon"
        assert result["available_slots"][-1] == "17:00"

    def test_explicit_duration_beats_type(self, db, context, business, make_type):
        review = make_type(name="Review", duration_minutes=60)
        result = AvailabilityService.list_slots(db, context, business.id, MONDAY, duration_minutes=30, type_id=review["id"])
        assert result["duration_minutes"] == 30

    def test_defaults_to_45_minutes(self, db, context, business):
        result = AvailabilityService.list_slots(db, context, business.id, MONDAY)
        assert result["duration_minutes"] == 45
        assert result["slot_interval_minutes"] == 15

    def test_closed_day_has_no_slots(self, db, context, business):
        SettingsService.update_settings(
            db, context, business.id,
            SettingsUpdateRequest(business_hours={"sun": DayHoursSchema(closed=True)})
        )

        result = AvailabilityService.list_slots(db, context, business.id, SUNDAY)

        assert result["closed"] is True
        assert result["available_slots"] == []

    def test_per_day_hours_shape_the_window(self, db, context, business):
        SettingsService.update_settings(
            db, context, business.id,
            SettingsUpdateRequest(business_hours={"mon": DayHoursSchema(open_time="12:00", close_time="14:00")})
        )

        result = AvailabilityService.list_slots(db, context, business.id, MONDAY, duration_minutes=60)

        assert result["available_slots"] == ["12:00", "12:15", "12:30", "12:45", "13:00"]

    def test_unknown_type(self, db, context, business):
        with pytest.raises(NotFoundError):
            AvailabilityService.list_slots(db, context, business.id, MONDAY, type_id="00000000-0000-0000-0000-000000000000")

    def test_bad_date(self, db, context, business):
        with pytest.raises(FormatError):
            AvailabilityService.list_slots(db, context, business.id, "19/10/2026")

    def test_repeated_listing_is_identical(self, db, context, business, booking):
        AppointmentService.create_appointment(db, context, business.id, booking(time="09:00", duration_minutes=30))
        AppointmentService.create_appointment(db, context, business.id, booking(time="13:00", duration_minutes=60))
        cancelled = AppointmentService.create_appointment(db, context, business.id, booking(time="15:00"))
        AppointmentService.update_status(db, context, business.id, cancelled["appointment"]["id"], "cancelled")

        first = AvailabilityService.list_slots(db, context, business.id, MONDAY)
        second = AvailabilityService.list_slots(db, context, business.id, MONDAY)

        assert first == second
        assert first["available_slots"] == sorted(first["available_slots"])
        assert "15:00" in first["available_slots"]


def test_listing_and_booking_share_configured_default(db, context, business, booking):
    short = BookingContext(
        settings=context.settings.model_copy(update={"DEFAULT_APPOINTMENT_DURATION": 30}),
        database=context.database,
        notifier=context.notifier,
    )

    listed = AvailabilityService.list_slots(db, short, business.id, MONDAY)
    created = AppointmentService.create_appointment(db, short, business.id, booking(duration_minutes=None))

    assert listed["duration_minutes"] == 30
    assert listed["available_slots"][-1] == "17:30"
    assert created["appointment"]["duration_minutes"] == 30


def test_default_window_comes_from_context(db, context, business):
    early = context.settings.model_copy(update={"DEFAULT_OPEN_TIME": "07:00", "DEFAULT_CLOSE_TIME": "12:00"})
    other = BusinessService.create_business(
        db,
        BookingContext(settings=early, database=context.database, notifier=context.notifier),
        name="Early Bird Bakery",
    )

    result = AvailabilityService.list_slots(db, context, other.id, MONDAY, duration_minutes=60)

    assert (result["open_time"], result["close_time"]) == ("07:00", "12:00")
    assert result["available_slots"][0] == "07:00"
    assert result["available_slots"][-1] == "11:00"
