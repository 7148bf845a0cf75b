from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from intellibook.core.exceptions import (
    FormatError,
    NotFoundError,
    OverlapError,
    StorageError,
    ValidationError,
)
from intellibook.schemas.appointment import AppointmentUpdate
from intellibook.schemas.business import DayHoursSchema, SettingsUpdateRequest
from intellibook.services.appointment.appointment_query_service import AppointmentQueryService
from intellibook.services.appointment.appointment_service import AppointmentService
from intellibook.services.appointment.appointment_store import AppointmentStore
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.settings_service import SettingsService
from tests.conftest import MONDAY, SUNDAY


def _count(db, business, day=MONDAY):
    return AppointmentQueryService.count_for_date(db, business.id, date.fromisoformat(day))


class TestValidation:

    def test_bad_time_fails_before_storage(self, db, context, business, booking, monkeypatch):
        def no_storage(*args, **kwargs):
            raise AssertionError("storage touched")

        monkeypatch.setattr(BusinessService, "get_business", no_storage)
        monkeypatch.setattr(BusinessService, "get_by_slug", no_storage)
        monkeypatch.setattr(AppointmentStore, "fetch_appointments", no_storage)

        with pytest.raises(FormatError) as exc:
            AppointmentService.create_appointment(db, context, business.id, booking(time="25:00"))
        assert exc.value.message == "time must be in HH:MM format"

        with pytest.raises(FormatError):
            AppointmentService.book_public_appointment(db, context, "no-such-shop", booking(time="25:00"))

    def test_bad_date(self, db, context, business, booking):
        with pytest.raises(FormatError):
            AppointmentService.create_appointment(db, context, business.id, booking(date="10/19/2026"))

    @pytest.mark.parametrize("overrides,message", [
        ({"client_name": "   "}, "client_name is required"),
        ({"date": None}, "date is required"),
        ({"time": None}, "time is required"),
        ({"duration_minutes": 0}, "duration_minutes must be greater than 0"),
        ({"notes": "x" * 5001}, "notes is too long (max 5000 characters)"),
    ])
    def test_field_rules(self, db, context, business, booking, overrides, message):
        with pytest.raises(ValidationError) as exc:
            AppointmentService.create_appointment(db, context, business.id, booking(**overrides))
        assert exc.value.message == message
        assert _count(db, business) == 0

    def test_unknown_business(self, db, context, booking):
        with pytest.raises(NotFoundError):
            AppointmentService.create_appointment(
                db, context, "00000000-0000-0000-0000-000000000000", booking()
            )


class TestCreate:

    def test_owner_booking_is_confirmed(self, db, context, business, booking, email_service):
        result = AppointmentService.create_appointment(db, context, business.id, booking())

        appointment = result["appointment"]
        assert appointment["status"] == "confirmed"
        assert appointment["source"] == "owner"
        assert appointment["time"] == "10:00"
        assert appointment["date"] == MONDAY
        assert appointment["title"] == "Appointment"
        assert appointment["location"] == "office"
        assert result["notifications"] == {"mode": "simulation", "sent": 2}

        recipients = [mail["to"] for mail in email_service.sent]
        assert recipients == ["jane@client.test", "owner@acme.test"]
        assert email_service.sent[0]["subject"] == "Acme Studio: Appointment confirmed"
        assert email_service.sent[1]["subject"] == "[Owner Alert] New booking - Acme Studio"

    def test_seconds_are_dropped(self, db, context, business, booking):
        result = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00:30"))
        assert result["appointment"]["time"] == "10:00"

    def test_default_duration(self, db, context, business, booking):
        result = AppointmentService.create_appointment(
            db, context, business.id, booking(duration_minutes=None)
        )
        assert result["appointment"]["duration_minutes"] == 45

    def test_type_supplies_defaults(self, db, context, business, booking, make_type):
        strategy = make_type(name="Strategy Session", duration_minutes=90, location_mode="virtual")

        result = AppointmentService.create_appointment(
            db, context, business.id, booking(type_id=strategy["id"], duration_minutes=None)
        )

        appointment = result["appointment"]
        assert appointment["duration_minutes"] == 90
        assert appointment["title"] == "Strategy Session"
        assert appointment["type_name"] == "Strategy Session"
        assert appointment["location"] == "virtual"

    def test_explicit_fields_beat_type(self, db, context, business, booking, make_type):
        strategy = make_type(name="Strategy Session", duration_minutes=90)

        result = AppointmentService.create_appointment(
            db, context, business.id,
            booking(type_id=strategy["id"], duration_minutes=30, title="Quick sync", location="phone")
        )

        appointment = result["appointment"]
        assert appointment["duration_minutes"] == 30
        assert appointment["title"] == "Quick sync"
        assert appointment["location"] == "phone"

    def test_inactive_type_is_rejected(self, db, context, business, booking, make_type):
        old = make_type(name="Legacy")
        AppointmentTypeService.deactivate_type(db, business.id, old["id"])

        with pytest.raises(NotFoundError):
            AppointmentService.create_appointment(db, context, business.id, booking(type_id=old["id"]))

    def test_overlap_writes_nothing(self, db, context, business, booking):
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))

        with pytest.raises(OverlapError) as exc:
            AppointmentService.create_appointment(db, context, business.id, booking(time="10:30"))

        assert exc.value.conflict_start == "10:00"
        assert exc.value.conflict_end == "10:45"
        assert _count(db, business) == 1

    def test_back_to_back_is_allowed(self, db, context, business, booking):
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:45"))
        AppointmentService.create_appointment(db, context, business.id, booking(time="09:15"))
        assert _count(db, business) == 3

    def test_owner_may_book_outside_hours(self, db, context, business, booking):
        result = AppointmentService.create_appointment(db, context, business.id, booking(time="20:00"))
        assert result["appointment"]["time"] == "20:00"


class TestPublicBooking:

    def test_public_booking_is_pending(self, db, context, business, booking, email_service):
        result = AppointmentService.book_public_appointment(db, context, business.slug, booking())

        assert result["appointment"]["status"] == "pending"
        assert result["appointment"]["source"] == "public"
        subjects = [mail["subject"] for mail in email_service.sent]
        assert subjects[0] == "Acme Studio: Booking received - awaiting confirmation"
        assert "ACTION REQUIRED" in email_service.sent[1]["text"]

    def test_closed_day(self, db, context, business, booking):
        SettingsService.update_settings(
            db, context, business.id,
            SettingsUpdateRequest(business_hours={"sun": DayHoursSchema(closed=True)})
        )

        with pytest.raises(ValidationError) as exc:
            AppointmentService.book_public_appointment(db, context, business.slug, booking(date=SUNDAY))

        assert "SUN" in exc.value.message
        assert _count(db, business, SUNDAY) == 0

    def test_must_fit_inside_hours(self, db, context, business, booking):
        with pytest.raises(ValidationError) as exc:
            AppointmentService.book_public_appointment(db, context, business.slug, booking(time="17:30"))
        assert "outside business hours for MON" in exc.value.message

    def test_unknown_slug(self, db, context, booking):
        with pytest.raises(NotFoundError):
            AppointmentService.book_public_appointment(db, context, "nope", booking())

    def test_owner_alert_can_be_turned_off(self, db, context, business, booking, email_service):
        SettingsService.update_settings(db, context, business.id, SettingsUpdateRequest(notify_owner_email=False))

        result = AppointmentService.book_public_appointment(db, context, business.slug, booking())

        assert result["notifications"]["sent"] == 1
        assert [mail["to"] for mail in email_service.sent] == ["jane@client.test"]


class TestUpdate:

    def test_same_slot_edit_is_not_a_conflict(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        appointment_id = created["appointment"]["id"]

        updated = AppointmentService.update_appointment(
            db, context, business.id, appointment_id,
            AppointmentUpdate(time="10:00", notes="Bring documents")
        )

        assert updated["time"] == "10:00"
        assert updated["notes"] == "Bring documents"

    def test_extend_over_own_interval(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        updated = AppointmentService.update_appointment(
            db, context, business.id, created["appointment"]["id"], AppointmentUpdate(duration_minutes=90)
        )
        assert updated["duration_minutes"] == 90

    def test_reschedule_into_other_booking(self, db, context, business, booking):
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        second = AppointmentService.create_appointment(db, context, business.id, booking(time="12:00"))

        with pytest.raises(OverlapError):
            AppointmentService.update_appointment(
                db, context, business.id, second["appointment"]["id"], AppointmentUpdate(time="10:15")
            )

        unchanged = AppointmentQueryService.get_appointment_by_id(db, business.id, second["appointment"]["id"])
        assert unchanged["time"] == "12:00"

    def test_move_to_another_day(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        updated = AppointmentService.update_appointment(
            db, context, business.id, created["appointment"]["id"], AppointmentUpdate(date="2026-10-21")
        )
        assert updated["date"] == "2026-10-21"
        assert _count(db, business) == 0

    def test_changing_type_applies_its_defaults(self, db, context, business, booking, make_type):
        review = make_type(name="Review", duration_minutes=60, location_mode="phone")
        created = AppointmentService.create_appointment(db, context, business.id, booking())

        updated = AppointmentService.update_appointment(
            db, context, business.id, created["appointment"]["id"], AppointmentUpdate(type_id=review["id"])
        )

        assert updated["type_name"] == "Review"
        assert updated["duration_minutes"] == 60
        assert updated["location"] == "phone"

    def test_cancelled_appointment_can_be_edited_freely(self, db, context, business, booking):
        first = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        AppointmentService.update_status(db, context, business.id, first["appointment"]["id"], "cancelled")
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))

        updated = AppointmentService.update_appointment(
            db, context, business.id, first["appointment"]["id"], AppointmentUpdate(time="10:15")
        )
        assert updated["time"] == "10:15"

    def test_bad_time_on_update(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking())
        with pytest.raises(FormatError):
            AppointmentService.update_appointment(
                db, context, business.id, created["appointment"]["id"], AppointmentUpdate(time="7pm")
            )

    def test_missing_appointment(self, db, context, business):
        with pytest.raises(NotFoundError):
            AppointmentService.update_appointment(
                db, context, business.id, "00000000-0000-0000-0000-000000000000", AppointmentUpdate(notes="x")
            )


class TestStatus:

    def test_confirm_pending(self, db, context, business, booking, email_service):
        created = AppointmentService.book_public_appointment(db, context, business.slug, booking())
        email_service.sent.clear()

        result = AppointmentService.update_status(
            db, context, business.id, created["appointment"]["id"], "confirmed"
        )

        assert result["appointment"]["status"] == "confirmed"
        assert result["notifications"] == {"mode": "simulation", "sent": 1}
        assert email_service.sent[0]["subject"] == "Acme Studio: Appointment confirmed"

    def test_any_transition_is_allowed(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking())
        appointment_id = created["appointment"]["id"]

        for status in ("completed", "pending", "confirmed"):
            result = AppointmentService.update_status(db, context, business.id, appointment_id, status)
            assert result["appointment"]["status"] == status

    def test_unknown_status(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking())
        with pytest.raises(ValidationError):
            AppointmentService.update_status(db, context, business.id, created["appointment"]["id"], "done")

    def test_reactivation_checks_overlap(self, db, context, business, booking):
        first = AppointmentService.create_appointment(db, context, business.id, booking(time="10:00"))
        first_id = first["appointment"]["id"]
        AppointmentService.update_status(db, context, business.id, first_id, "cancelled")
        AppointmentService.create_appointment(db, context, business.id, booking(time="10:15"))

        with pytest.raises(OverlapError):
            AppointmentService.update_status(db, context, business.id, first_id, "confirmed")

        still_cancelled = AppointmentQueryService.get_appointment_by_id(db, business.id, first_id)
        assert still_cancelled["status"] == "cancelled"


class TestDelete:

    def test_delete_removes_row(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking())
        appointment_id = created["appointment"]["id"]

        AppointmentService.delete_appointment(db, business.id, appointment_id)

        with pytest.raises(NotFoundError):
            AppointmentQueryService.get_appointment_by_id(db, business.id, appointment_id)

    def test_delete_is_scoped_to_business(self, db, context, business, booking):
        created = AppointmentService.create_appointment(db, context, business.id, booking())
        other = BusinessService.create_business(db, context, name="Other Shop")

        with pytest.raises(NotFoundError):
            AppointmentService.delete_appointment(db, other.id, created["appointment"]["id"])


class TestFailureHandling:

    def test_storage_failure_rolls_back(self, db, context, business, booking, monkeypatch):
        original_insert = AppointmentStore.insert_appointment

        def failing_insert(self, record):
            original_insert(self, record)
            raise OperationalError("INSERT INTO appointments", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AppointmentStore, "insert_appointment", failing_insert)

        with pytest.raises(StorageError) as exc:
            AppointmentService.create_appointment(db, context, business.id, booking())

        assert exc.value.status_code == 500
        assert _count(db, business) == 0
        assert context.booking_lock.active_keys == 0

    def test_email_failure_does_not_fail_booking(self, db, context, business, booking, email_service):
        email_service.fail_with = RuntimeError("smtp down")

        result = AppointmentService.create_appointment(db, context, business.id, booking())

        assert result["appointment"]["status"] == "confirmed"
        assert result["notifications"] == {"mode": "none", "sent": 0}
        assert _count(db, business) == 1

    def test_no_client_email_still_alerts_owner(self, db, context, business, booking, email_service):
        result = AppointmentService.create_appointment(db, context, business.id, booking(client_email=None))
        assert result["notifications"]["sent"] == 1
        assert email_service.sent[0]["to"] == "owner@acme.test"
