# intellibook/schemas/__init__.py
from .appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentStatusUpdate,
    AppointmentResponse,
    BookingResponse,
    SlotListResponse,
    ErrorResponse
)

from .business import (
    BusinessCreateRequest,
    DayHoursSchema,
    SettingsUpdateRequest,
    AppointmentTypeCreate,
    AppointmentTypeUpdate
)

__all__ = [
    "AppointmentCreate",
    "AppointmentUpdate",
    "AppointmentStatusUpdate",
    "AppointmentResponse",
    "BookingResponse",
    "SlotListResponse",
    "ErrorResponse",
    "BusinessCreateRequest",
    "DayHoursSchema",
    "SettingsUpdateRequest",
    "AppointmentTypeCreate",
    "AppointmentTypeUpdate",
]
