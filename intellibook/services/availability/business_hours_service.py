# intellibook/services/availability/business_hours_service.py
"""
Resolves a business's per-weekday schedule into the bookable window for a
calendar date.

Stored hours are read leniently: a missing or malformed weekday entry is
replaced by the global fallback window. Hours supplied by an owner in a
settings update are validated strictly.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from intellibook.config.settings import Settings
from intellibook.core.exceptions import FormatError, ValidationError
from intellibook.models.business import BusinessSettings
from intellibook.utils.time_utils import (
    format_human,
    format_minutes,
    parse_time_lenient,
    parse_time_strict,
)

logger = logging.getLogger(__name__)

# Sunday=0 convention
DAY_KEYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


@dataclass
class DayHours:
    closed: bool
    open_time: str
    close_time: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "closed": self.closed,
            "open_time": self.open_time,
            "close_time": self.close_time,
        }


@dataclass
class ResolvedHours:
    """The window for one date plus the full week it was resolved from"""
    day_key: str
    closed: bool
    open_time: str
    close_time: str
    week: Dict[str, DayHours] = field(default_factory=dict)

    @property
    def open_minutes(self) -> int:
        return parse_time_lenient(self.open_time)

    @property
    def close_minutes(self) -> int:
        return parse_time_lenient(self.close_time)

    @property
    def label(self) -> str:
        return self.day_key.upper()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_key": self.day_key,
            "closed": self.closed,
            "open_time": self.open_time,
            "close_time": self.close_time,
            "business_hours": {key: day.to_dict() for key, day in self.week.items()},
        }


def _entry_value(entry: Dict[str, Any], snake: str, camel: str):
    return entry.get(snake, entry.get(camel))


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _stored_or(entry: Dict[str, Any], snake: str, camel: str, fallback: str) -> str:
    try:
        return format_minutes(parse_time_strict(_entry_value(entry, snake, camel)))
    except FormatError:
        return fallback


class BusinessHoursService:
    """Business-hours resolution and validation"""

    @staticmethod
    def day_key_for(target_date: date) -> str:
        # date.weekday() is Monday=0
        return DAY_KEYS[(target_date.weekday() + 1) % 7]

    @staticmethod
    def default_week(fallback_open: str, fallback_close: str) -> Dict[str, DayHours]:
        return {
            key: DayHours(closed=False, open_time=fallback_open, close_time=fallback_close)
            for key in DAY_KEYS
        }

    @staticmethod
    def _load_raw(raw) -> Dict[str, Any]:
        if raw is None or raw == "":
            return {}
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.warning("Stored business hours are not valid JSON, using fallback window")
                return {}
        return raw if isinstance(raw, dict) else {}

    @staticmethod
    def resolve_week(raw, fallback_open: str, fallback_close: str) -> Dict[str, DayHours]:
        """
        Lenient read of a stored weekday table. Never raises; every day the
        blob does not describe validly gets the fallback window.
        """
        fallback_open = format_minutes(parse_time_lenient(fallback_open, "09:00"))
        fallback_close = format_minutes(parse_time_lenient(fallback_close, "18:00"))
        data = BusinessHoursService._load_raw(raw)
        week = BusinessHoursService.default_week(fallback_open, fallback_close)

        for key in DAY_KEYS:
            entry = data.get(key)
            if not isinstance(entry, dict):
                continue
            if _as_bool(entry.get("closed", False)):
                # Closed wins even when the stored times are missing or bad
                week[key] = DayHours(
                    closed=True,
                    open_time=_stored_or(entry, "open_time", "openTime", fallback_open),
                    close_time=_stored_or(entry, "close_time", "closeTime", fallback_close),
                )
                continue

            try:
                open_minutes = parse_time_strict(_entry_value(entry, "open_time", "openTime"))
                close_minutes = parse_time_strict(_entry_value(entry, "close_time", "closeTime"))
            except FormatError:
                continue
            if close_minutes <= open_minutes:
                continue

            week[key] = DayHours(
                closed=False,
                open_time=format_minutes(open_minutes),
                close_time=format_minutes(close_minutes),
            )

        return week

    @staticmethod
    def normalize_week(raw, fallback_open: str, fallback_close: str) -> Dict[str, Dict[str, Any]]:
        """
        Strict validation of an owner-supplied weekday table.

        Days the caller leaves out get the fallback window. Returns the
        storable dict form.

        Raises:
            FormatError: a time is not HH:MM
            ValidationError: an open day closes at or before it opens
        """
        if raw is not None and not isinstance(raw, dict):
            raise ValidationError("business_hours must be an object keyed by weekday")
        data = raw or {}
        normalized = {}

        for key in DAY_KEYS:
            entry = data.get(key)
            if entry is None:
                normalized[key] = DayHours(False, fallback_open, fallback_close).to_dict()
                continue
            if not isinstance(entry, dict):
                raise ValidationError(f"Business hours for {key.upper()} must be an object")

            closed = _as_bool(entry.get("closed", False))
            open_value = _entry_value(entry, "open_time", "openTime") or fallback_open
            close_value = _entry_value(entry, "close_time", "closeTime") or fallback_close
            open_minutes = parse_time_strict(open_value)
            close_minutes = parse_time_strict(close_value)

            if not closed and close_minutes <= open_minutes:
                raise ValidationError(
                    f"Close time must be later than open time for {key.upper()}"
                )

            normalized[key] = DayHours(
                closed=closed,
                open_time=format_minutes(open_minutes),
                close_time=format_minutes(close_minutes),
            ).to_dict()

        return normalized

    @staticmethod
    def resolve(target_date: date, raw_hours, fallback_open: str, fallback_close: str) -> ResolvedHours:
        week = BusinessHoursService.resolve_week(raw_hours, fallback_open, fallback_close)
        day_key = BusinessHoursService.day_key_for(target_date)
        day = week[day_key]
        return ResolvedHours(
            day_key=day_key,
            closed=day.closed,
            open_time=day.open_time,
            close_time=day.close_time,
            week=week,
        )

    @staticmethod
    def resolve_from_settings(
            app_settings: Settings,
            settings_row: Optional[BusinessSettings],
            target_date: date
    ) -> ResolvedHours:
        """Per-business window first, then the configured defaults"""
        if settings_row is None:
            return BusinessHoursService.resolve(
                target_date, None, app_settings.DEFAULT_OPEN_TIME, app_settings.DEFAULT_CLOSE_TIME
            )
        return BusinessHoursService.resolve(
            target_date,
            settings_row.business_hours,
            settings_row.open_time or app_settings.DEFAULT_OPEN_TIME,
            settings_row.close_time or app_settings.DEFAULT_CLOSE_TIME,
        )

    @staticmethod
    def resolve_for_business(db: Session, app_settings: Settings, business_id, target_date: date) -> ResolvedHours:
        settings_row = db.query(BusinessSettings).filter(
            BusinessSettings.business_id == business_id
        ).first()
        return BusinessHoursService.resolve_from_settings(app_settings, settings_row, target_date)

    @staticmethod
    def assert_bookable(hours: ResolvedHours, start_minutes: int, duration_minutes: int):
        """Reject closed days and bookings that spill outside the window"""
        if hours.closed:
            raise ValidationError(
                f"Bookings are not available on {hours.label}: the business is closed that day"
            )

        if start_minutes < hours.open_minutes or start_minutes + duration_minutes > hours.close_minutes:
            raise ValidationError(
                f"Selected time is outside business hours for {hours.label} "
                f"({format_human(hours.open_minutes)}-{format_human(hours.close_minutes)})"
            )
