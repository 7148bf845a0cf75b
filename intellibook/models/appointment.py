# intellibook/models/appointment.py
from sqlalchemy import Column, String, Integer, Text, Date, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
from intellibook.utils.time_utils import safe_time
import enum
import uuid


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentSource(str, enum.Enum):
    OWNER = "owner"    # Created from the dashboard
    PUBLIC = "public"  # Self-booked on the storefront


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_business_date_time", "business_id", "date", "time"),
        Index("idx_appointments_business_status", "business_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(Uuid, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False)
    type_id = Column(Uuid, ForeignKey("appointment_types.id"), nullable=True)

    # Client info
    client_name = Column(String(200), nullable=False)
    client_email = Column(String(320), nullable=True)

    # Appointment details
    title = Column(String(500), nullable=True)
    date = Column(Date, nullable=False)  # calendar date, no time component
    time = Column(String(5), nullable=False)  # HH:MM wall clock, no offset
    duration_minutes = Column(Integer, nullable=False, default=45)
    location = Column(String(100), nullable=False, default="office")
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=AppointmentStatus.CONFIRMED.value)
    source = Column(String(20), nullable=False, default=AppointmentSource.OWNER.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    appointment_type = relationship("AppointmentType", lazy="joined")

    def __repr__(self):
        return f"<Appointment(id={self.id}, date={self.date}, time={self.time}, status={self.status})>"

    @property
    def type_name(self) -> str:
        return self.appointment_type.name if self.appointment_type else "General"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "type_id": str(self.type_id) if self.type_id else None,
            "type_name": self.type_name,
            "title": self.title or self.type_name or "Appointment",
            "client_name": self.client_name,
            "client_email": self.client_email,
            "date": self.date.isoformat() if self.date else None,
            "time": safe_time(self.time),
            "duration_minutes": self.duration_minutes,
            "location": self.location,
            "notes": self.notes,
            "status": self.status,
            "source": self.source,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
