"""Builders for transforming a slot selection into booking requests."""

from __future__ import annotations
from tracking import t

from decimal import Decimal
from typing import List, Optional

from checkout.errors import ValidationError
from courts.models import TimeSlot
from courts.slots import generate_time_slots
from payments.amounts import line_total, quantize

from .contracts import BookingPayload, BookingRequestSet
from .selection import BookingSelection


class BookingRequestBuilder:
    """Construct one create-booking payload per selected slot.

    Pure request construction: nothing is reserved server-side.
    """

    def __init__(self, *, currency_exponent: int = 2) -> None:
        t('reservations.request_builder.BookingRequestBuilder.__init__')
        self._exponent = currency_exponent

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def build(self, selection: BookingSelection) -> BookingRequestSet:
        """Validate the selection and return payloads plus the aggregate total."""
        t('reservations.request_builder.BookingRequestBuilder.build')

        if not selection.slots:
            raise ValidationError("Select at least one time slot", field="slots")

        court = selection.court
        if not court.court_id:
            raise ValidationError("Selection has no court", field="court")

        unit_price = self._resolve_price(court.slot_price)
        self._ensure_offered(selection)

        payloads = tuple(
            BookingPayload(
                facility_id=court.facility_id,
                service_id=court.service_id,
                court_id=court.court_id,
                booking_date=selection.booking_date,
                slot=slot,
                price=unit_price,
            )
            for slot in selection.slots
        )

        # The total is computed once here and handed to payment as-is.
        total = line_total(unit_price, len(payloads), self._exponent)
        return BookingRequestSet(payloads=payloads, total=total, unit_price=unit_price)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _resolve_price(self, price: Optional[Decimal]) -> Decimal:
        t('reservations.request_builder.BookingRequestBuilder._resolve_price')
        if price is None or price <= 0:
            raise ValidationError("Court has no valid slot price", field="price")
        return quantize(price, self._exponent)

    @staticmethod
    def _ensure_offered(selection: BookingSelection) -> None:
        t('reservations.request_builder.BookingRequestBuilder._ensure_offered')
        offered: List[TimeSlot] = generate_time_slots(selection.court)
        unknown = [slot for slot in selection.slots if slot not in offered]
        if unknown:
            labels = ", ".join(str(slot) for slot in unknown)
            raise ValidationError(
                f"Slots not offered by court {selection.court.court_id}: {labels}",
                field="slots",
            )


__all__ = ["BookingRequestBuilder"]
