# intellibook/core/exceptions.py
"""Scheduling error taxonomy, translated to HTTP responses at the API edge"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base class for errors the booking core reports to its callers"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message}


class FormatError(SchedulingError):
    """Malformed date/time string"""


class ValidationError(SchedulingError):
    """Bad field, closed day or business-hours ordering violation"""


class OverlapError(SchedulingError):
    """Requested interval intersects an existing appointment"""

    status_code = 409

    def __init__(
            self,
            message: str,
            conflict_start: Optional[str] = None,
            conflict_end: Optional[str] = None,
            conflict_id: Optional[Any] = None
    ):
        super().__init__(message)
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        self.conflict_id = conflict_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["conflict"] = {
            "start": self.conflict_start,
            "end": self.conflict_end,
        }
        return data


class NotFoundError(SchedulingError):
    """Missing business, appointment type or appointment"""

    status_code = 404


class StorageError(SchedulingError):
    """Transaction failed and was rolled back"""

    status_code = 500

    def __init__(self, message: str = "Could not save the appointment. Please try again."):
        super().__init__(message)
