"""Shared fakes and utilities for unit tests."""

from __future__ import annotations
from tracking import t

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from backend_api.client import BackendRequestError
from infrastructure.settings import load_settings
from payments.outcomes import Succeeded
from reservations.contracts import Booking, BookingStatus


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        t('tests.helpers.DummyLogger.__init__')
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""
        t('tests.helpers.DummyLogger.messages')

        formatted: List[Tuple[str, Any]] = []
        for level, args, _ in self.records:
            message: Any = None
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = str(template)
            formatted.append((level, message))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _, _ in self.records]


def make_settings(**overrides: str):
    """Settings built from an explicit environment so tests never read ``.env``."""
    t('tests.helpers.make_settings')
    env = {
        "BOOKING_API_URL": "https://backend.test/api",
        "PAYMENT_GATEWAY_KEY": "rzp_test_key",
        "PAYMENT_MERCHANT_NAME": "Test Arena",
        "PAYMENT_TIMEOUT_SECONDS": "5",
        "BOOKING_CREATE_TIMEOUT_SECONDS": "1",
        "SUPPORT_CONTACT": "support@arena.test",
    }
    env.update(overrides)
    return load_settings(env)


class FakeBackend:
    """In-memory booking backend.

    ``fail_slots`` lists start times whose create-booking call is rejected;
    ``hang_slots`` lists start times whose call never returns. With
    ``rendezvous`` set, create calls block until that many are in flight.
    """

    def __init__(
        self,
        *,
        fail_slots: Iterable[str] = (),
        hang_slots: Iterable[str] = (),
        rendezvous: int = 0,
        fail_success_report: bool = False,
        fail_failure_report: bool = False,
    ) -> None:
        t('tests.helpers.FakeBackend.__init__')
        self.fail_slots = set(fail_slots)
        self.hang_slots = set(hang_slots)
        self.rendezvous = rendezvous
        self.in_flight = 0
        self.max_in_flight = 0
        self._all_started = asyncio.Event()
        self.fail_success_report = fail_success_report
        self.fail_failure_report = fail_failure_report
        self.created: List[Dict[str, Any]] = []
        self.success_reports: List[Tuple[str, str]] = []
        self.failure_reports: List[str] = []
        self.cancelled: List[str] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.created) + len(self.success_reports) + len(self.failure_reports)

    async def create_booking(self, payload: Dict[str, Any]) -> Booking:
        t('tests.helpers.FakeBackend.create_booking')
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.rendezvous:
                # Nobody answers until ``rendezvous`` calls are open at once.
                if self.in_flight >= self.rendezvous:
                    self._all_started.set()
                await self._all_started.wait()
            return await self._create(payload)
        finally:
            self.in_flight -= 1

    async def _create(self, payload: Dict[str, Any]) -> Booking:
        start = payload["start_time"]
        if start in self.hang_slots:
            await asyncio.sleep(3600)
        await asyncio.sleep(0)
        if start in self.fail_slots:
            raise BackendRequestError("Slot already booked", status_code=409)
        self.created.append(payload)
        return Booking(
            booking_id=f"bk-{len(self.created)}",
            court_id=payload["court_id"],
            booking_date=date.fromisoformat(payload["date"]),
            start_time=start,
            end_time=payload["end_time"],
            price=Decimal(payload["price"]),
            order_id=payload["order_id"],
            payment_id=payload["gateway_payment_id"],
        )

    async def report_payment_success(self, order_id: str, payment_id: str) -> Dict[str, Any]:
        t('tests.helpers.FakeBackend.report_payment_success')
        self.success_reports.append((order_id, payment_id))
        if self.fail_success_report:
            raise BackendRequestError("Order not found", status_code=422)
        return {"success": True}

    async def report_payment_failure(self, order_id: str) -> Dict[str, Any]:
        t('tests.helpers.FakeBackend.report_payment_failure')
        self.failure_reports.append(order_id)
        if self.fail_failure_report:
            raise BackendRequestError("Order not found", status_code=422)
        return {"success": True}

    async def list_bookings(self) -> List[Booking]:
        return [
            Booking(
                booking_id=f"bk-{index + 1}",
                court_id=payload["court_id"],
                booking_date=date.fromisoformat(payload["date"]),
                start_time=payload["start_time"],
                end_time=payload["end_time"],
                price=Decimal(payload["price"]),
                status=BookingStatus.CONFIRMED,
            )
            for index, payload in enumerate(self.created)
        ]

    async def cancel_booking(self, booking_id: str) -> Dict[str, Any]:
        self.cancelled.append(booking_id)
        return {"success": True}

    async def aclose(self) -> None:
        self.closed = True


class ScriptedGateway:
    """Gateway that resolves with a preset outcome and records what it was shown."""

    def __init__(self, outcome: Any = None, *, delay: float = 0.0, error: Optional[Exception] = None) -> None:
        t('tests.helpers.ScriptedGateway.__init__')
        self.outcome = outcome if outcome is not None else Succeeded("pay_123")
        self.delay = delay
        self.error = error
        self.opened: List[Tuple[Any, Any]] = []
        self.validated: List[Any] = []

    def validate_display(self, display) -> None:
        self.validated.append(display)

    async def open(self, intent, options):
        t('tests.helpers.ScriptedGateway.open')
        self.opened.append((intent, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.outcome
