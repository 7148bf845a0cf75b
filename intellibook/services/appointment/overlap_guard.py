# intellibook/services/appointment/overlap_guard.py
"""
Overlap detection for (business, date).

Standalone calls are a best-effort pre-check. The authoritative check is
the one AppointmentService runs while holding the booking lock.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from intellibook.core.exceptions import OverlapError
from intellibook.models.appointment import AppointmentStatus
from intellibook.services.appointment.appointment_store import AppointmentStore, BookedInterval
from intellibook.utils.time_utils import format_human, format_minutes, parse_time_lenient

logger = logging.getLogger(__name__)

DEFAULT_BLOCKER_DURATION = 45


@dataclass(frozen=True)
class Blocker:
    """[start, end) of an existing non-cancelled appointment"""
    appointment_id: object
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        # Half-open: touching intervals do not overlap
        return start < self.end and end > self.start


def blockers_from(rows: Iterable[BookedInterval], exclude_id=None) -> List[Blocker]:
    blockers = []
    for row in rows:
        if row.status == AppointmentStatus.CANCELLED.value:
            continue
        if exclude_id is not None and str(row.id) == str(exclude_id):
            continue
        start = parse_time_lenient(row.time)
        duration = int(row.duration_minutes or DEFAULT_BLOCKER_DURATION)
        blockers.append(Blocker(appointment_id=row.id, start=start, end=start + duration))
    return blockers


class OverlapGuard:
    """Checks a candidate interval against the day's blockers"""

    @staticmethod
    def find_conflict(
            db: Session,
            business_id,
            appointment_date: date,
            start_minutes: int,
            duration_minutes: int,
            exclude_id=None
    ) -> Optional[Blocker]:
        rows = AppointmentStore(db).fetch_appointments(business_id, appointment_date)
        end_minutes = start_minutes + duration_minutes

        for blocker in blockers_from(rows, exclude_id=exclude_id):
            if blocker.overlaps(start_minutes, end_minutes):
                return blocker
        return None

    @staticmethod
    def assert_no_overlap(
            db: Session,
            business_id,
            appointment_date: date,
            start_minutes: int,
            duration_minutes: int,
            exclude_id=None
    ) -> None:
        """
        Raise OverlapError naming the first conflicting window, if any.
        No side effects on success.
        """
        blocker = OverlapGuard.find_conflict(
            db, business_id, appointment_date, start_minutes, duration_minutes, exclude_id
        )
        if blocker is None:
            return

        logger.info(
            f"Overlap for business {business_id} on {appointment_date}: "
            f"{format_minutes(start_minutes)}+{duration_minutes}m hits appointment {blocker.appointment_id}"
        )
        raise OverlapError(
            f"Time overlaps with another appointment "
            f"({format_human(blocker.start)}-{format_human(blocker.end)}).",
            conflict_start=format_minutes(blocker.start),
            conflict_end=format_minutes(blocker.end),
            conflict_id=blocker.appointment_id,
        )
