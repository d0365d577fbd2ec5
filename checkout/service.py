"""Facade that wires settings, backend, gateway and orchestrator together."""

from __future__ import annotations
from tracking import t

import inspect
import logging
from datetime import date, datetime
from typing import Any, List, Optional

from backend_api.client import BookingBackendClient
from courts.models import Court, TimeSlot
from courts.slots import filter_bookable_starts, generate_time_slots
from infrastructure.settings import AppSettings, get_settings
from payments.gateway import CheckoutDisplay, PaymentGateway, select_gateway
from reservations.contracts import Booking, BuyerContact
from reservations.selection import BookingSelection, SlotLike

from .committer import BookingBackend, BookingCommitter
from .orchestrator import CheckoutResult, PaymentOrchestrator
from .reconciliation import ReconciliationReporter

logger = logging.getLogger(__name__)


class CheckoutService:
    """Entry point used by the surrounding application."""

    def __init__(
        self,
        settings: AppSettings,
        orchestrator: PaymentOrchestrator,
        backend: BookingBackend,
        gateway: PaymentGateway,
    ) -> None:
        t('checkout.service.CheckoutService.__init__')
        self.settings = settings
        self.orchestrator = orchestrator
        self.backend = backend
        self.gateway = gateway

    def available_slots(
        self,
        court: Court,
        target_date: date,
        *,
        now: Optional[datetime] = None,
    ) -> List[TimeSlot]:
        """Slots of ``court`` still bookable on ``target_date``."""
        t('checkout.service.CheckoutService.available_slots')
        slots = generate_time_slots(court)
        bookable = set(
            filter_bookable_starts(
                (slot.start_time for slot in slots),
                target_date,
                timezone=self.settings.timezone,
                now=now,
            )
        )
        return [slot for slot in slots if slot.start_time in bookable]

    def toggle_slot(self, selection: BookingSelection, slot: SlotLike) -> BookingSelection:
        t('checkout.service.CheckoutService.toggle_slot')
        return selection.toggle(slot)

    async def checkout(
        self,
        selection: BookingSelection,
        contact: BuyerContact,
        display: Optional[CheckoutDisplay] = None,
    ) -> CheckoutResult:
        t('checkout.service.CheckoutService.checkout')
        return await self.orchestrator.checkout(selection, contact, display)

    async def my_bookings(self) -> List[Booking]:
        t('checkout.service.CheckoutService.my_bookings')
        return await self.backend.list_bookings()

    async def cancel_booking(self, booking_id: str) -> Any:
        t('checkout.service.CheckoutService.cancel_booking')
        return await self.backend.cancel_booking(booking_id)

    async def aclose(self) -> None:
        """Release the backend connection pool and any gateway resources."""
        t('checkout.service.CheckoutService.aclose')
        for resource in (self.gateway, self.backend):
            closer = getattr(resource, "close", None) or getattr(resource, "aclose", None)
            if closer is None:
                continue
            result = closer()
            if inspect.isawaitable(result):
                await result


def build_checkout_service(
    settings: Optional[AppSettings] = None,
    *,
    gateway: Optional[PaymentGateway] = None,
    backend: Optional[BookingBackend] = None,
) -> CheckoutService:
    """Assemble a :class:`CheckoutService` from settings."""
    t('checkout.service.build_checkout_service')

    settings = settings or get_settings()
    backend = backend or BookingBackendClient(settings)
    gateway = gateway or select_gateway(settings)

    reporter = ReconciliationReporter(settings.support_contact)
    committer = BookingCommitter(
        backend,
        reporter,
        timeout_seconds=settings.booking_timeout_seconds,
    )
    orchestrator = PaymentOrchestrator(gateway, backend, committer, settings)
    logger.info("Checkout service ready (platform=%s)", settings.checkout_platform)
    return CheckoutService(settings, orchestrator, backend, gateway)


__all__ = ["CheckoutService", "build_checkout_service"]
