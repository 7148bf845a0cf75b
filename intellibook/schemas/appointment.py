"""
Pydantic schemas for appointment requests and responses.

Field limits and time/date formats are enforced by AppointmentService so
that the same rules apply no matter who calls it; these models only
shape the payload.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class AppointmentCreate(BaseModel):
    """Booking request from the dashboard or the storefront"""
    type_id: Optional[str] = None
    title: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    date: Optional[str] = Field(None, description="YYYY-MM-DD")
    time: Optional[str] = Field(None, description="HH:MM, 24-hour")
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """
    Edit/reschedule. Only fields present in the request are applied;
    send type_id=null to detach the appointment type.
    """
    type_id: Optional[str] = None
    title: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: str


# ============================================================================
# Response Schemas
# ============================================================================

class NotificationSummaryResponse(BaseModel):
    mode: str
    sent: int


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    type_id: Optional[str] = None
    type_name: str
    title: str
    client_name: str
    client_email: Optional[str] = None
    date: str
    time: str
    duration_minutes: int
    location: str
    notes: Optional[str] = None
    status: str
    source: str
    created_at: Optional[str] = None


class BookingResponse(BaseModel):
    appointment: AppointmentResponse
    notifications: NotificationSummaryResponse


class SlotListResponse(BaseModel):
    date: str
    duration_minutes: int
    slot_interval_minutes: int
    day_key: str
    closed: bool
    open_time: str
    close_time: str
    available_slots: List[str]


class OverlapConflict(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
    conflict: Optional[OverlapConflict] = None
