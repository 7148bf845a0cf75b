# intellibook/models/appointment_type.py
"""
AppointmentType Model - the services a business offers
Each type belongs to one business and supplies default duration/location.
"""
from sqlalchemy import Column, String, Integer, ForeignKey, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import enum
import uuid
from intellibook.models.base import Base


class LocationMode(str, enum.Enum):
    OFFICE = "office"
    VIRTUAL = "virtual"
    PHONE = "phone"
    HYBRID = "hybrid"


TYPE_COLORS = [
    "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
    "linear-gradient(135deg, #f093fb 0%, #f5576c 100%)",
    "linear-gradient(135deg, #4facfe 0%, #00f2fe 100%)",
    "linear-gradient(135deg, #43e97b 0%, #38f9d7 100%)",
]


class AppointmentType(Base):
    """
    Structured service definition (source of truth for duration/location).
    Deactivation is a soft delete: rows stay for historical appointments.
    """
    __tablename__ = "appointment_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=45)
    price_cents = Column(Integer, nullable=False, default=0)
    location_mode = Column(String(20), nullable=False, default=LocationMode.HYBRID.value)
    color = Column(String(120), nullable=True)

    active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AppointmentType(id={self.id}, name={self.name}, business_id={self.business_id})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "formatted_duration": self.formatted_duration,
            "price_cents": self.price_cents,
            "formatted_price": self.formatted_price,
            "location_mode": self.location_mode,
            "color": self.color or TYPE_COLORS[0],
            "active": self.active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @property
    def formatted_price(self) -> str:
        """Return human-readable price string"""
        if not self.price_cents:
            return "Free"
        return f"${self.price_cents / 100:.2f}"

    @property
    def formatted_duration(self) -> str:
        """Return human-readable duration string"""
        hours = self.duration_minutes // 60
        minutes = self.duration_minutes % 60

        if hours > 0 and minutes > 0:
            return f"{hours}h {minutes}m"
        elif hours > 0:
            return f"{hours}h"
        else:
            return f"{minutes}m"
