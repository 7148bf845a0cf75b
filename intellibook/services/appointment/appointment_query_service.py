# ============================================================================
# intellibook/services/appointment/appointment_query_service.py
# Read-only queries - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session
from sqlalchemy import or_
from datetime import date
from typing import Optional, Dict, Any

from intellibook.core.exceptions import NotFoundError, ValidationError
from intellibook.models.appointment import Appointment, AppointmentStatus
from intellibook.utils.ids import coerce_uuid
from intellibook.utils.time_utils import parse_date_strict


class AppointmentQueryService:
    """Service layer for appointment listings."""

    @staticmethod
    def list_appointments(
            db: Session,
            business_id,
            on_date: Optional[str] = None,
            start_date: Optional[str] = None,
            end_date: Optional[str] = None,
            status: Optional[str] = None,
            q: Optional[str] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters, ordered by date then time."""
        business_id = coerce_uuid(business_id, "Business")
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if on_date:
            query = query.filter(Appointment.date == parse_date_strict(on_date))
        if start_date:
            query = query.filter(Appointment.date >= parse_date_strict(start_date))
        if end_date:
            query = query.filter(Appointment.date <= parse_date_strict(end_date))
        if status:
            if status not in [s.value for s in AppointmentStatus]:
                raise ValidationError(f"Unknown status filter: {status}")
            query = query.filter(Appointment.status == status)
        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(or_(
                Appointment.client_name.ilike(pattern),
                Appointment.client_email.ilike(pattern),
                Appointment.title.ilike(pattern),
            ))

        query = query.order_by(Appointment.date.asc(), Appointment.time.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "business_id": str(business_id),
            "total": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "date": on_date,
                "start_date": start_date,
                "end_date": end_date,
                "status": status,
                "q": q,
            },
            "appointments": [appt.to_dict() for appt in appointments]
        }

    @staticmethod
    def get_appointment_by_id(db: Session, business_id, appointment_id) -> Dict[str, Any]:
        appointment = db.query(Appointment).filter(
            Appointment.id == coerce_uuid(appointment_id, "Appointment"),
            Appointment.business_id == coerce_uuid(business_id, "Business")
        ).first()

        if not appointment:
            raise NotFoundError("Appointment not found")

        return appointment.to_dict()

    @staticmethod
    def count_for_date(db: Session, business_id, on_date: date) -> int:
        """Non-cancelled appointments on a date"""
        return db.query(Appointment).filter(
            Appointment.business_id == coerce_uuid(business_id, "Business"),
            Appointment.date == on_date,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        ).count()
