#!/usr/bin/env python3
"""
Script to create a business with weekly hours and starter appointment types
Usage: python -m intellibook.scripts.create_business ["Business Name"] [owner@email]
"""
import logging
import sys

from intellibook.config.settings import get_settings
from intellibook.core.context import BookingContext
from intellibook.core.exceptions import SchedulingError
from intellibook.schemas.business import DayHoursSchema, SettingsUpdateRequest
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.settings_service import SettingsService
from intellibook.utils.my_logging import setup_logging

logger = logging.getLogger(__name__)

# Weekdays 9-18, Saturday 10-16, closed Sunday
DEMO_HOURS = {
    "sun": DayHoursSchema(closed=True, open_time="09:00", close_time="18:00"),
    "mon": DayHoursSchema(closed=False, open_time="09:00", close_time="18:00"),
    "tue": DayHoursSchema(closed=False, open_time="09:00", close_time="18:00"),
    "wed": DayHoursSchema(closed=False, open_time="09:00", close_time="18:00"),
    "thu": DayHoursSchema(closed=False, open_time="09:00", close_time="18:00"),
    "fri": DayHoursSchema(closed=False, open_time="09:00", close_time="18:00"),
    "sat": DayHoursSchema(closed=False, open_time="10:00", close_time="16:00"),
}


def create_business_with_hours(name: str, owner_email=None) -> str:
    """Create a demo business with business hours and default types"""
    context = BookingContext.create(get_settings())
    db = context.database.session()

    try:
        business = BusinessService.create_business(db, context, name=name, owner_email=owner_email)
        settings = SettingsService.update_settings(
            db, context, business.id, SettingsUpdateRequest(business_hours=DEMO_HOURS)
        )
        types = AppointmentTypeService.seed_defaults(db, business.id)

        print("\n" + "=" * 60)
        print("BUSINESS CREATED SUCCESSFULLY!")
        print("=" * 60)
        print(f"\nBusiness ID: {business.id}")
        print(f"Name: {business.name}")
        print(f"Booking link slug: {business.slug}")
        print(f"\nAppointment types:")
        for appointment_type in types:
            print(f"  - {appointment_type['name']} ({appointment_type['duration_minutes']} min)")
        print(f"\nBusiness Hours:")
        for day_key, hours in settings["business_hours"].items():
            if hours["closed"]:
                print(f"  {day_key.upper()}: CLOSED")
            else:
                print(f"  {day_key.upper()}: {hours['open_time']} - {hours['close_time']}")
        print()

        return str(business.id)

    except SchedulingError as e:
        logger.error(f"Error creating business: {e.message}")
        sys.exit(1)
    finally:
        db.close()
        context.close()


if __name__ == "__main__":
    setup_logging()
    app_settings = get_settings()
    business_name = sys.argv[1] if len(sys.argv) > 1 else app_settings.BUSINESS_NAME
    email = sys.argv[2] if len(sys.argv) > 2 else app_settings.OWNER_EMAIL
    create_business_with_hours(business_name, email)
