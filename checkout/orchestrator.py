"""Drive one checkout attempt from slot selection to durable bookings."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from collections import deque
import time
import uuid
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from backend_api.client import BackendError
from infrastructure.constants import ORDER_ID_PREFIX, RECENT_ORDER_ID_WINDOW
from infrastructure.settings import AppSettings
from payments.amounts import to_minor_units
from payments.contact import validate_contact
from payments.gateway import CheckoutDisplay, CheckoutOptions, PaymentGateway, build_checkout_options
from payments.outcomes import Cancelled, Failed, PaymentOutcome, Succeeded
from reservations.contracts import Booking, BookingRequestSet, BuyerContact, OrderIntent
from reservations.request_builder import BookingRequestBuilder
from reservations.selection import BookingSelection

from .committer import BookingBackend, BookingCommitter
from .errors import BookingCreationError, GatewayError, ReportingError
from .states import CheckoutState, advance


@dataclass(frozen=True)
class CheckoutResult:
    """Terminal, non-error result of a checkout attempt."""

    state: CheckoutState
    order_id: str
    bookings: Tuple[Booking, ...] = ()
    payment_id: Optional[str] = None
    settled: bool = False

    @property
    def cancelled(self) -> bool:
        return self.state is CheckoutState.CANCELLED


class PaymentOrchestrator:
    """Run the checkout state machine for a selection.

    The gateway is any :class:`PaymentGateway`; hosted and embedded variants
    are treated identically here.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        backend: BookingBackend,
        committer: BookingCommitter,
        settings: AppSettings,
        *,
        builder: Optional[BookingRequestBuilder] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('checkout.orchestrator.PaymentOrchestrator.__init__')
        self.gateway = gateway
        self.backend = backend
        self.committer = committer
        self.settings = settings
        self.builder = builder or BookingRequestBuilder(currency_exponent=settings.currency_exponent)
        self.logger = logger or logging.getLogger('PaymentOrchestrator')
        # Bounded window of issued ids; anything older relies on uuid4.
        self._recent_order_ids: Deque[str] = deque(maxlen=RECENT_ORDER_ID_WINDOW)

    async def checkout(
        self,
        selection: BookingSelection,
        contact: BuyerContact,
        display: Optional[CheckoutDisplay] = None,
    ) -> CheckoutResult:
        """Pay for ``selection`` and create its bookings.

        Raises ``ValidationError`` before any network call, ``GatewayError``
        when payment fails and ``BookingCreationError`` when payment was
        captured but bookings could not all be created. A cancelled payment
        returns normally.
        """
        t('checkout.orchestrator.PaymentOrchestrator.checkout')

        request_set = self.builder.build(selection)
        buyer = validate_contact(contact, country_code=self.settings.default_country_code)
        display = display or self._default_display(selection)
        self.gateway.validate_display(display)

        state = CheckoutState.IDLE
        intent = self._mint_intent(request_set, buyer)
        options = build_checkout_options(intent, display, settings=self.settings)

        state = advance(state, CheckoutState.AWAITING_GATEWAY)
        self.logger.info(
            "Order %s: opening gateway for %s slot(s), %s minor units",
            intent.order_id,
            request_set.slot_count,
            intent.amount_minor,
        )
        outcome = await self._await_gateway(intent, options)

        if isinstance(outcome, Cancelled):
            state = advance(state, CheckoutState.CANCELLED)
            self.logger.info("Order %s: payment cancelled by user", intent.order_id)
            return CheckoutResult(state=state, order_id=intent.order_id)

        if isinstance(outcome, Failed):
            state = advance(state, CheckoutState.FAILED)
            self.logger.error("Order %s: payment failed: %s", intent.order_id, outcome.reason)
            await self._report_failure(intent.order_id)
            raise GatewayError(intent.order_id, outcome.reason)

        state = advance(state, CheckoutState.SUCCEEDED)
        self.logger.info("Order %s: payment %s captured", intent.order_id, outcome.payment_id)
        result = await self.committer.commit(
            request_set,
            order_id=intent.order_id,
            payment_id=outcome.payment_id,
        )

        if not result.succeeded:
            state = advance(state, CheckoutState.BOOKING_CREATION_FAILED)
            raise BookingCreationError(
                result.notice,
                created=result.created,
                failures=result.failures,
            )

        state = advance(state, CheckoutState.BOOKING_CREATED)
        return CheckoutResult(
            state=state,
            order_id=intent.order_id,
            bookings=result.created,
            payment_id=outcome.payment_id,
            settled=result.settled,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _mint_intent(self, request_set: BookingRequestSet, buyer: BuyerContact) -> OrderIntent:
        t('checkout.orchestrator.PaymentOrchestrator._mint_intent')
        order_id = f"{ORDER_ID_PREFIX}_{int(time.time() * 1000)}_{uuid.uuid4().hex}"
        if order_id in self._recent_order_ids:
            raise RuntimeError(f"Order id collision: {order_id}")
        self._recent_order_ids.append(order_id)
        return OrderIntent(
            order_id=order_id,
            amount_minor=to_minor_units(request_set.total, self.settings.currency_exponent),
            currency=self.settings.currency,
            contact=buyer,
            total=request_set.total,
        )

    async def _await_gateway(self, intent: OrderIntent, options: CheckoutOptions) -> PaymentOutcome:
        t('checkout.orchestrator.PaymentOrchestrator._await_gateway')
        timeout = self.settings.payment_timeout_seconds
        try:
            outcome = await asyncio.wait_for(self.gateway.open(intent, options), timeout=timeout)
        except asyncio.TimeoutError:
            return Failed(f"Payment not completed within {timeout:g} seconds")
        except Exception as exc:
            self.logger.exception("Order %s: gateway raised", intent.order_id)
            return Failed(f"Payment gateway error: {exc}")
        if not isinstance(outcome, (Succeeded, Failed, Cancelled)):
            return Failed(f"Unexpected gateway outcome: {outcome!r}")
        return outcome

    async def _report_failure(self, order_id: str) -> None:
        t('checkout.orchestrator.PaymentOrchestrator._report_failure')
        try:
            await self.backend.report_payment_failure(order_id)
        except BackendError as exc:
            self.logger.error("%s", ReportingError(order_id, "payment failure", str(exc)))

    def _default_display(self, selection: BookingSelection) -> CheckoutDisplay:
        t('checkout.orchestrator.PaymentOrchestrator._default_display')
        court = selection.court
        return CheckoutDisplay(
            venue_name=self.settings.merchant_name,
            court_name=court.name or f"Court {court.court_id}",
            booking_date=selection.booking_date.isoformat(),
            slot_count=selection.count,
        )


__all__ = ["CheckoutResult", "PaymentOrchestrator"]
