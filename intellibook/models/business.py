# intellibook/models/business.py
"""
Business (tenant) and its per-business settings row
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from intellibook.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    slug = Column(String(120), nullable=False, unique=True, index=True)
    owner_email = Column(String(320), nullable=True)

    # IANA label, display only; slot math never converts with it
    timezone = Column(String(64), nullable=False, default="America/Los_Angeles")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    settings = relationship(
        "BusinessSettings",
        back_populates="business",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Business(id={self.id}, slug={self.slug})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "owner_email": self.owner_email,
            "timezone": self.timezone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class BusinessSettings(Base):
    """One row per business, created lazily"""
    __tablename__ = "business_settings"

    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    business_name = Column(String(200), nullable=False)
    owner_email = Column(String(320), nullable=True)
    timezone = Column(String(64), nullable=False, default="America/Los_Angeles")

    # Global fallback window, HH:MM
    open_time = Column(String(5), nullable=False, default="09:00")
    close_time = Column(String(5), nullable=False, default="18:00")

    # {"sun": {"closed": true, "open_time": "09:00", "close_time": "18:00"}, ...}
    business_hours = Column(JSON, nullable=True)

    notify_owner_email = Column(Boolean, nullable=False, default=True)

    business = relationship("Business", back_populates="settings")

    def __repr__(self):
        return f"<BusinessSettings(business_id={self.business_id})>"
