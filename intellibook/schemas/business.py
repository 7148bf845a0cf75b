"""
Pydantic schemas for businesses, settings and appointment types
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, Dict


# ============================================================================
# Businesses
# ============================================================================

def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BusinessCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    owner_email: Optional[EmailStr] = Field(None, description="Receives new-booking alerts")
    timezone: Optional[str] = Field(None, max_length=64)

    @field_validator("owner_email", mode="before")
    @classmethod
    def blank_owner_email(cls, value):
        return _blank_to_none(value)


# ============================================================================
# Settings
# ============================================================================

class DayHoursSchema(BaseModel):
    """One weekday entry; camelCase keys from older clients are accepted"""
    closed: bool = False
    open_time: Optional[str] = Field(None, alias="openTime")
    close_time: Optional[str] = Field(None, alias="closeTime")

    model_config = ConfigDict(populate_by_name=True)


class SettingsUpdateRequest(BaseModel):
    """
    Partial settings update. Only the fields you send are changed.
    """
    business_name: Optional[str] = Field(None, alias="businessName", min_length=1, max_length=200)
    owner_email: Optional[EmailStr] = Field(None, alias="ownerEmail")
    timezone: Optional[str] = Field(None, max_length=64)
    open_time: Optional[str] = Field(None, alias="openTime")
    close_time: Optional[str] = Field(None, alias="closeTime")
    business_hours: Optional[Dict[str, DayHoursSchema]] = Field(None, alias="businessHours")
    notify_owner_email: Optional[bool] = Field(None, alias="notifyOwnerEmail")

    model_config = ConfigDict(populate_by_name=True)

    # An empty string clears the owner address
    @field_validator("owner_email", mode="before")
    @classmethod
    def blank_owner_email(cls, value):
        return _blank_to_none(value)


# ============================================================================
# Appointment types
# ============================================================================

class AppointmentTypeCreate(BaseModel):
    """Request model for creating an appointment type"""
    name: str = Field(..., min_length=1, max_length=200)
    duration_minutes: int = Field(default=45)
    price_cents: int = Field(default=0)
    location_mode: str = Field(default="hybrid")
    color: Optional[str] = Field(None, max_length=120)


class AppointmentTypeUpdate(BaseModel):
    """Request model for updating an appointment type"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    duration_minutes: Optional[int] = None
    price_cents: Optional[int] = None
    location_mode: Optional[str] = None
    color: Optional[str] = Field(None, max_length=120)
