"""Shared booking contracts for the builder, orchestrator and committer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from courts.models import TimeSlot
from infrastructure.constants import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_PENDING,
    PAYMENT_METHOD,
)


class BookingStatus(Enum):
    """Lifecycle of a persisted booking. Only this field may change after creation."""

    PENDING = BOOKING_STATUS_PENDING
    CONFIRMED = BOOKING_STATUS_CONFIRMED
    CANCELLED = BOOKING_STATUS_CANCELLED

    @classmethod
    def from_raw(cls, value: Any) -> "BookingStatus":
        """Map a backend status string, defaulting to ``PENDING`` for unknown values."""

        normalised = str(value or "").strip().lower()
        for status in cls:
            if status.value == normalised:
                return status
        return cls.PENDING


@dataclass(frozen=True)
class BuyerContact:
    """Buyer details forwarded to the payment gateway as prefill."""

    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class BookingPayload:
    """Create-booking request for exactly one slot, independent of payment."""

    facility_id: Optional[str]
    service_id: Optional[str]
    court_id: str
    booking_date: date
    slot: TimeSlot
    price: Decimal

    def to_request(
        self,
        *,
        order_id: str,
        payment_id: str,
        index: int,
        multi_slot: bool,
    ) -> Dict[str, Any]:
        """Serialize into the backend's create-booking body.

        Multi-slot purchases share one gateway payment, so each slot carries
        ``<payment_id>_<index>`` as its own payment reference.
        """

        return {
            "facility_id": self.facility_id,
            "service_id": self.service_id,
            "court_id": self.court_id,
            "date": self.booking_date.isoformat(),
            "start_time": self.slot.start_time,
            "end_time": self.slot.end_time,
            "price": f"{self.price:.2f}",
            "payment_id": f"{payment_id}_{index}" if multi_slot else payment_id,
            "gateway_payment_id": payment_id,
            "order_id": order_id,
            "payment_method": PAYMENT_METHOD,
        }


@dataclass(frozen=True)
class BookingRequestSet:
    """Per-slot payloads plus the aggregate total computed once."""

    payloads: Tuple[BookingPayload, ...]
    total: Decimal
    unit_price: Decimal

    @property
    def slot_count(self) -> int:
        return len(self.payloads)

    @property
    def is_multi_slot(self) -> bool:
        return len(self.payloads) > 1


@dataclass(frozen=True)
class OrderIntent:
    """One checkout attempt as seen by the gateway and the backend.

    Minted once per attempt; the ``order_id`` is never reused.
    """

    order_id: str
    amount_minor: int
    currency: str
    contact: BuyerContact
    total: Decimal
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Booking:
    """Read reference to a booking owned by the backend store."""

    booking_id: str
    court_id: Optional[str]
    booking_date: Optional[date]
    start_time: Optional[str]
    end_time: Optional[str]
    price: Decimal
    status: BookingStatus = BookingStatus.PENDING
    service_id: Optional[str] = None
    facility_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    venue_name: Optional[str] = None
    court_name: Optional[str] = None

    def with_status(self, status: BookingStatus) -> "Booking":
        """Return a copy with only the status changed."""

        return replace(self, status=status)
