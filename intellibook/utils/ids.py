# intellibook/utils/ids.py
from typing import Optional
from uuid import UUID

from intellibook.core.exceptions import NotFoundError


def coerce_uuid(value, label: str = "record") -> UUID:
    """Accept UUID or its string form; anything else cannot name a row"""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError(f"{label} not found")


def optional_uuid(value, label: str = "record") -> Optional[UUID]:
    if value is None or value == "":
        return None
    return coerce_uuid(value, label)
