# ============================================================================
# intellibook/services/appointment/dashboard_service.py
# Owner overview: counts, the day's calendar and schedule insights (read-only)
# ============================================================================
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.models.appointment import Appointment, AppointmentStatus
from intellibook.models.appointment_type import AppointmentType
from intellibook.services.appointment.appointment_query_service import AppointmentQueryService
from intellibook.services.appointment.overlap_guard import blockers_from
from intellibook.services.business.business_service import BusinessService
from intellibook.services.business.settings_service import SettingsService
from intellibook.utils.time_utils import format_human, parse_date_strict, parse_time_lenient

logger = logging.getLogger(__name__)

TREND_DAYS = 30
LOOKAHEAD_DAYS = 7
MIN_GAP_MINUTES = 45
HEAVY_DAY_BOOKINGS = 7
CANCELLATION_ALERT_PERCENT = 15
MAX_INSIGHTS = 6

HIGH = "high"
MEDIUM = "medium"
LOW = "low"


def _percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up"""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)


def _insight(kind: str, text: str, action: str, confidence: str, horizon: str) -> Dict[str, str]:
    return {
        "kind": kind,
        "text": text,
        "action": action,
        "confidence": confidence,
        "horizon": horizon,
    }


def _label(appointment: Appointment) -> str:
    if appointment.appointment_type is not None:
        return appointment.appointment_type.name
    return appointment.title or "Appointment"


def _is_active(appointment: Appointment) -> bool:
    return appointment.status != AppointmentStatus.CANCELLED.value


class DashboardService:
    """Summary numbers and heuristics for the owner's home screen"""

    @staticmethod
    def largest_gap(appointments: List[Appointment]) -> Optional[Dict[str, int]]:
        """
        Widest free stretch between consecutive non-cancelled appointments
        on one day, or None when fewer than two are booked.
        """
        blockers = sorted(blockers_from(appointments), key=lambda b: b.start)
        if len(blockers) < 2:
            return None

        best = None
        for previous, following in zip(blockers, blockers[1:]):
            gap = following.start - previous.end
            if gap > 0 and (best is None or gap > best["minutes"]):
                best = {"start": previous.end, "minutes": gap}
        return best

    @staticmethod
    def build_insights(
            focus_date: date,
            recent: List[Appointment],
            pending_count: int,
            timezone: str
    ) -> List[Dict[str, str]]:
        """
        Heuristics over the trend window (focus date minus 29 days onward).
        At most six entries; the timezone reminder closes the list when
        there is room for it.
        """
        timezone_note = _insight(
            "timezone",
            f"Timezone is set to {timezone}.",
            "Keep the timezone aligned with business hours and reminder rules.",
            HIGH,
            "configuration",
        )
        if not recent:
            return [
                _insight(
                    "getting_started",
                    "No bookings yet. Add a few appointments to unlock utilization and trend insights.",
                    "Create your first week of appointments, then check back.",
                    LOW,
                    "now",
                ),
                timezone_note,
            ]

        insights = []
        active = [a for a in recent if _is_active(a)]

        type_counts = Counter(_label(a) for a in active)
        if type_counts:
            top_name, top_count = type_counts.most_common(1)[0]
            insights.append(_insight(
                "top_service",
                f"{top_name} is your top service in the last {TREND_DAYS} days "
                f"({top_count} bookings, {_percent(top_count, len(active))}% share).",
                "Prioritize this service in peak-time slots and on the booking page.",
                HIGH if len(active) >= 20 else MEDIUM,
                f"{TREND_DAYS}-day trend",
            ))

        hour_counts = Counter(parse_time_lenient(a.time) // 60 for a in active)
        if hour_counts:
            peak_hour, peak_count = hour_counts.most_common(1)[0]
            insights.append(_insight(
                "peak_hour",
                f"Peak demand is around {format_human(peak_hour * 60)} ({peak_count} bookings).",
                "Protect this window for high-value services.",
                HIGH if len(active) >= 15 else MEDIUM,
                "pattern",
            ))

        week_end = focus_date + timedelta(days=LOOKAHEAD_DAYS - 1)
        day_load = Counter(
            a.date for a in sorted(active, key=lambda a: a.date)
            if focus_date <= a.date <= week_end
        )
        busiest = day_load.most_common(1)[0] if day_load else None
        if busiest and busiest[1] >= HEAVY_DAY_BOOKINGS:
            insights.append(_insight(
                "heaviest_day",
                f"Heaviest upcoming day is {busiest[0].isoformat()} with {busiest[1]} bookings.",
                "Add buffers or move low-priority bookings to a lighter day.",
                HIGH,
                f"next {LOOKAHEAD_DAYS} days",
            ))
        else:
            insights.append(_insight(
                "balanced_load",
                f"Upcoming load looks balanced (max {busiest[1] if busiest else 0} bookings "
                f"on any day in the next {LOOKAHEAD_DAYS} days).",
                "Open an extra slot on your lightest day.",
                HIGH,
                f"next {LOOKAHEAD_DAYS} days",
            ))

        gap = DashboardService.largest_gap([a for a in active if a.date == focus_date])
        if gap is not None and gap["minutes"] >= MIN_GAP_MINUTES:
            insights.append(_insight(
                "largest_gap",
                f"There is a {gap['minutes']}-minute gap on {focus_date.isoformat()} "
                f"starting around {format_human(gap['start'])}.",
                "Good slot for a short consultation or a same-day booking.",
                HIGH,
                "schedule",
            ))

        cancelled = len(recent) - len(active)
        cancel_rate = _percent(cancelled, len(recent))
        if cancel_rate >= CANCELLATION_ALERT_PERCENT:
            insights.append(_insight(
                "cancellation_rate",
                f"Cancellation rate is {cancel_rate}% over the last {TREND_DAYS} days.",
                "Send confirmation reminders a day before the start time.",
                HIGH if len(recent) >= 20 else MEDIUM,
                "reliability",
            ))

        if pending_count > 0:
            noun = "booking is" if pending_count == 1 else "bookings are"
            insights.append(_insight(
                "pending_backlog",
                f"{pending_count} {noun} pending confirmation.",
                "Clear pending items first to stabilize this week's schedule.",
                HIGH,
                "action now",
            ))

        insights.append(timezone_note)
        return insights[:MAX_INSIGHTS]

    @staticmethod
    def get_overview(db: Session, ctx: BookingContext, business_id, on_date=None) -> Dict[str, Any]:
        """
        Counts for the focus date and the week starting on it, the pending
        backlog, that day's appointments, active types with booking counts,
        and schedule insights.
        """
        business = BusinessService.get_business(db, business_id)
        focus_date = parse_date_strict(on_date) if on_date else date.today()
        week_end = focus_date + timedelta(days=LOOKAHEAD_DAYS - 1)
        settings_row = SettingsService.get_or_create(db, ctx, business)

        scoped = db.query(Appointment).filter(Appointment.business_id == business.id)
        active = scoped.filter(Appointment.status != AppointmentStatus.CANCELLED.value)

        pending_count = scoped.filter(Appointment.status == AppointmentStatus.PENDING.value).count()
        stats = {
            "today": AppointmentQueryService.count_for_date(db, business.id, focus_date),
            "week": active.filter(Appointment.date >= focus_date, Appointment.date <= week_end).count(),
            "pending": pending_count,
        }

        day_appointments = scoped.filter(Appointment.date == focus_date).order_by(
            Appointment.time.asc()
        ).all()

        booking_counts = dict(
            db.query(Appointment.type_id, func.count(Appointment.id))
            .filter(Appointment.business_id == business.id, Appointment.type_id.isnot(None))
            .group_by(Appointment.type_id)
            .all()
        )
        types = db.query(AppointmentType).filter(
            AppointmentType.business_id == business.id,
            AppointmentType.active == True,  # noqa: E712
        ).order_by(AppointmentType.created_at.asc(), AppointmentType.name.asc()).all()

        recent = scoped.filter(
            Appointment.date >= focus_date - timedelta(days=TREND_DAYS - 1)
        ).order_by(Appointment.date.asc(), Appointment.time.asc()).all()

        insights = DashboardService.build_insights(
            focus_date, recent, pending_count, settings_row.timezone or business.timezone
        )
        logger.debug(f"Overview for business {business.id} on {focus_date}: {len(insights)} insights")

        return {
            "date": focus_date.isoformat(),
            "stats": stats,
            "appointments": [a.to_dict() for a in day_appointments],
            "types": [
                {**t.to_dict(), "booking_count": booking_counts.get(t.id, 0)}
                for t in types
            ],
            "insights": insights,
        }
