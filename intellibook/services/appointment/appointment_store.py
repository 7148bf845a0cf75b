# intellibook/services/appointment/appointment_store.py
"""
Storage contract the scheduling core talks to.

Queries are written once against the ORM so the same code serves the
embedded and the networked backend; the only backend-specific primitive
(the booking lock) lives on Database.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from intellibook.models.appointment import Appointment
from intellibook.models.appointment_type import AppointmentType
from intellibook.models.business import BusinessSettings


@dataclass(frozen=True)
class BookedInterval:
    """Row shape returned by fetch_appointments"""
    id: UUID
    time: str
    duration_minutes: int
    status: str


class AppointmentStore:
    """Thin repository over a Session; the caller owns the transaction"""

    def __init__(self, db: Session):
        self.db = db

    def fetch_appointments(self, business_id, appointment_date: date) -> List[BookedInterval]:
        """
        Every appointment for (business, date) ordered by time.
        Nothing is filtered out here, cancelled rows included.
        """
        rows = self.db.execute(
            select(
                Appointment.id,
                Appointment.time,
                Appointment.duration_minutes,
                Appointment.status,
            )
            .where(
                Appointment.business_id == business_id,
                Appointment.date == appointment_date,
            )
            .order_by(Appointment.time.asc(), Appointment.created_at.asc())
        ).all()

        return [
            BookedInterval(
                id=row.id,
                time=row.time,
                duration_minutes=row.duration_minutes,
                status=row.status,
            )
            for row in rows
        ]

    def insert_appointment(self, record: Dict[str, Any]) -> UUID:
        appointment = Appointment(**record)
        self.db.add(appointment)
        self.db.flush()
        return appointment.id

    def update_appointment(self, appointment_id, business_id, record: Dict[str, Any]) -> int:
        result = self.db.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.business_id == business_id,
            )
            .values(**record)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def get_appointment(self, business_id, appointment_id) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id,
        ).first()

    def find_active_type(self, business_id, type_id) -> Optional[AppointmentType]:
        return self.db.query(AppointmentType).filter(
            AppointmentType.id == type_id,
            AppointmentType.business_id == business_id,
            AppointmentType.active == True,  # noqa: E712
        ).first()

    def get_settings(self, business_id) -> Optional[BusinessSettings]:
        return self.db.query(BusinessSettings).filter(
            BusinessSettings.business_id == business_id
        ).first()
