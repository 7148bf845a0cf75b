# intellibook/models/__init__.py
from .base import Base
from .business import Business, BusinessSettings
from .appointment_type import AppointmentType, LocationMode
from .appointment import Appointment, AppointmentStatus, AppointmentSource

__all__ = [
    "Base",
    "Business",
    "BusinessSettings",
    "AppointmentType",
    "LocationMode",
    "Appointment",
    "AppointmentStatus",
    "AppointmentSource",
]
