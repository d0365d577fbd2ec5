"""Normalise the backend's loosely shaped booking records."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from courts.models import parse_price
from reservations.contracts import Booking, BookingStatus
from tracking import t


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _parse_date(value: Any) -> Optional[date]:
    t('backend_api.serializers._parse_date')
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.strip()[:10]).date()
        except ValueError:
            return None
    return None


def _clock(value: Any) -> Optional[str]:
    """Trim "HH:MM:SS" to "HH:MM"."""
    text = _text(value)
    if text and text.count(":") == 2:
        return text.rsplit(":", 1)[0]
    return text


def unwrap_booking(data: Any) -> Mapping[str, Any]:
    """Return the booking record from ``{"booking": {...}}``, ``{"data": {...}}`` or a bare record."""
    t('backend_api.serializers.unwrap_booking')
    if not isinstance(data, Mapping):
        return {}
    for key in ("booking", "data"):
        inner = data.get(key)
        if isinstance(inner, Mapping):
            return inner
    return data


def booking_from_record(
    record: Mapping[str, Any],
    *,
    fallback: Optional[Mapping[str, Any]] = None,
) -> Booking:
    """Build a :class:`Booking` from a backend record.

    ``fallback`` (usually the create-booking request body) fills fields the
    backend did not echo back.
    """
    t('backend_api.serializers.booking_from_record')

    merged = dict(fallback or {})
    merged.update({key: value for key, value in record.items() if value not in (None, "")})

    facility = merged.get("facility")
    venue_name = merged.get("facility_name")
    if venue_name is None and isinstance(facility, str):
        venue_name = facility
    elif venue_name is None and isinstance(facility, Mapping):
        venue_name = facility.get("name")

    court = merged.get("court")
    court_name = merged.get("court_name") or (court if isinstance(court, str) else None)

    price = parse_price(merged.get("total_price", merged.get("price")))

    return Booking(
        booking_id=str(merged.get("id") or merged.get("booking_id") or ""),
        court_id=_text(merged.get("court_id")),
        booking_date=_parse_date(merged.get("date")),
        start_time=_clock(merged.get("start_time")),
        end_time=_clock(merged.get("end_time")),
        price=price if price is not None else Decimal(0),
        status=BookingStatus.from_raw(merged.get("status")),
        service_id=_text(merged.get("service_id")),
        facility_id=_text(merged.get("facility_id")),
        order_id=_text(merged.get("order_id")),
        payment_id=_text(merged.get("gateway_payment_id") or merged.get("payment_id")),
        venue_name=_text(venue_name),
        court_name=_text(court_name),
    )


def bookings_from_list(data: Any) -> List[Booking]:
    """Parse ``{"bookings": [...]}``; anything else is an empty history."""
    t('backend_api.serializers.bookings_from_list')
    if not isinstance(data, Mapping):
        return []
    records = data.get("bookings")
    if not isinstance(records, list):
        return []
    return [booking_from_record(record) for record in records if isinstance(record, Mapping)]
