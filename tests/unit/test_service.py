from tracking import t
from datetime import date, datetime
from decimal import Decimal

import pytest

from checkout import CheckoutState, build_checkout_service
from courts import Court, TimeSlot
from payments.outcomes import Succeeded
from reservations.contracts import BuyerContact
from reservations.selection import BookingSelection
from tests.helpers import FakeBackend, ScriptedGateway, make_settings

COURT = Court(court_id="4", open_time="09:00", close_time="13:00", slot_price=Decimal("600"), name="Court 4")


def _service(gateway=None, backend=None):
    return build_checkout_service(
        make_settings(),
        gateway=gateway or ScriptedGateway(Succeeded("pay_s")),
        backend=backend or FakeBackend(),
    )


def test_available_slots_hide_past_starts_today():
    t('tests.unit.test_service.test_available_slots_hide_past_starts_today')
    service = _service()

    slots = service.available_slots(COURT, date(2026, 9, 1), now=datetime(2026, 9, 1, 10, 30))

    assert slots == [TimeSlot("11:00", "12:00"), TimeSlot("12:00", "13:00")]


def test_available_slots_for_future_date_are_complete():
    service = _service()

    slots = service.available_slots(COURT, date(2026, 9, 2), now=datetime(2026, 9, 1, 23, 0))

    assert [slot.start_time for slot in slots] == ["09:00", "10:00", "11:00", "12:00"]


@pytest.mark.asyncio
async def test_toggle_then_checkout_end_to_end():
    backend = FakeBackend()
    service = _service(backend=backend)
    selection = BookingSelection.empty(COURT, date(2026, 9, 2))
    selection = service.toggle_slot(selection, "10:00")
    selection = service.toggle_slot(selection, "11:00")

    result = await service.checkout(
        selection, BuyerContact(name="Dev", email="dev@example.com", phone="9876543210")
    )

    assert result.state is CheckoutState.BOOKING_CREATED
    assert len(result.bookings) == 2
    assert len(await service.my_bookings()) == 2

    await service.cancel_booking(result.bookings[0].booking_id)
    assert backend.cancelled == ["bk-1"]

    await service.aclose()
    assert backend.closed is True
