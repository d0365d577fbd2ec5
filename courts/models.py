"""
Court and TimeSlot models for slot derivation.
"""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from infrastructure.constants import DEFAULT_SLOT_DURATION_MINUTES


@dataclass(frozen=True)
class Court:
    """
    A bookable court as published by the venue catalog.

    Operating window and duration are kept exactly as the catalog sent them;
    slot derivation decides whether they are usable. A court with a broken
    window simply has no slots.

    Attributes:
        court_id: Catalog identifier of the court
        open_time: Day-local opening time (e.g., "09:00" or "09:00:00")
        close_time: Day-local closing time
        slot_duration_minutes: Slot length in minutes (int or numeric string)
        slot_price: Price of one slot, ``None`` when the catalog value is unusable
        name: Display name (e.g., "Court 1")
        service_id: Facility service the court belongs to
        facility_id: Venue identifier
    """

    court_id: str
    open_time: Any
    close_time: Any
    slot_duration_minutes: Any = DEFAULT_SLOT_DURATION_MINUTES
    slot_price: Optional[Decimal] = None
    name: str = ""
    service_id: Optional[str] = None
    facility_id: Optional[str] = None

    @classmethod
    def from_catalog(
        cls,
        record: Mapping[str, Any],
        *,
        facility_id: Optional[Any] = None,
        service_id: Optional[Any] = None,
    ) -> "Court":
        """Build a court from the backend's court record without raising on bad data."""
        t('courts.models.Court.from_catalog')

        duration = record.get("duration")
        if duration in (None, ""):
            duration = DEFAULT_SLOT_DURATION_MINUTES

        resolved_service = service_id if service_id is not None else record.get("facility_service_id")

        return cls(
            court_id=str(record.get("id", "")),
            open_time=record.get("start_time"),
            close_time=record.get("end_time"),
            slot_duration_minutes=duration,
            slot_price=parse_price(record.get("slot_price")),
            name=str(record.get("court_name") or "Court"),
            service_id=str(resolved_service) if resolved_service is not None else None,
            facility_id=str(facility_id) if facility_id is not None else None,
        )


@dataclass(frozen=True, order=True)
class TimeSlot:
    """
    A derived, never persisted, slot of a court's day.

    Attributes:
        start_time: Zero-padded start ("10:00")
        end_time: Zero-padded end ("11:00")
    """

    start_time: str
    end_time: str

    def __str__(self) -> str:
        return f"{self.start_time} - {self.end_time}"


def parse_price(value: Any) -> Optional[Decimal]:
    """Parse a catalog price ("500", "500.00", 500) into a ``Decimal``."""
    t('courts.models.parse_price')

    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price
