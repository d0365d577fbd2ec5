"""Embedded checkout through Telegram invoices.

An invoice is sent to the buyer's chat with the order id as its payload. The
pre-checkout query is approved only while the matching intent is pending, and
the successful-payment message or the cancel button settles the outcome.
"""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, LabeledPrice, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    PreCheckoutQueryHandler,
    filters,
)

from checkout.errors import ValidationError
from reservations.contracts import OrderIntent

from .amounts import format_amount, from_minor_units
from .gateway import CheckoutDisplay, CheckoutOptions
from .outcomes import Cancelled, Failed, PaymentOutcome, Succeeded

logger = logging.getLogger(__name__)

CANCEL_CALLBACK_PREFIX = "checkout_cancel:"


@dataclass
class _PendingInvoice:
    future: "asyncio.Future[PaymentOutcome]"
    amount: int
    currency: str


class TelegramInvoiceGateway:
    """Gateway variant for the in-chat checkout."""

    def __init__(self, bot: Bot, *, provider_token: str, currency_exponent: int = 2) -> None:
        t('payments.telegram_checkout.TelegramInvoiceGateway.__init__')
        self._bot = bot
        self._exponent = currency_exponent
        self._provider_token = provider_token
        self._pending: Dict[str, _PendingInvoice] = {}

    @property
    def pending_orders(self) -> tuple:
        return tuple(self._pending)

    def validate_display(self, display: CheckoutDisplay) -> None:
        """An invoice can only be sent to a known chat."""
        t('payments.telegram_checkout.TelegramInvoiceGateway.validate_display')
        if display.chat_id is None:
            raise ValidationError("No Telegram chat to send the invoice to", field="chat_id")

    async def open(self, intent: OrderIntent, options: CheckoutOptions) -> PaymentOutcome:
        t('payments.telegram_checkout.TelegramInvoiceGateway.open')

        if options.chat_id is None:
            return Failed(reason="No Telegram chat to send the invoice to")

        loop = asyncio.get_running_loop()
        pending = _PendingInvoice(
            future=loop.create_future(),
            amount=intent.amount_minor,
            currency=intent.currency,
        )
        self._pending[intent.order_id] = pending

        try:
            try:
                await self._bot.send_invoice(
                    chat_id=options.chat_id,
                    title=options.name,
                    description=options.description,
                    payload=intent.order_id,
                    provider_token=self._provider_token,
                    currency=intent.currency,
                    prices=[LabeledPrice(label=options.description, amount=intent.amount_minor)],
                    reply_markup=self._invoice_keyboard(intent, self._exponent),
                )
            except TelegramError as exc:
                logger.error("Could not send invoice for %s: %s", intent.order_id, exc)
                return Failed(reason=f"Could not send invoice: {exc}")

            return await pending.future
        finally:
            self._pending.pop(intent.order_id, None)

    # ------------------------------------------------------------------
    # Telegram update handlers
    # ------------------------------------------------------------------
    async def handle_pre_checkout(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        t('payments.telegram_checkout.TelegramInvoiceGateway.handle_pre_checkout')
        query = update.pre_checkout_query
        pending = self._pending.get(query.invoice_payload)

        if pending is None:
            await query.answer(ok=False, error_message="This checkout is no longer active.")
            return

        if query.total_amount != pending.amount or query.currency != pending.currency:
            logger.warning(
                "Pre-checkout mismatch for %s: %s %s (expected %s %s)",
                query.invoice_payload,
                query.total_amount,
                query.currency,
                pending.amount,
                pending.currency,
            )
            await query.answer(ok=False, error_message="The amount changed. Please start again.")
            self._settle(query.invoice_payload, Failed(reason="Pre-checkout amount mismatch"))
            return

        await query.answer(ok=True)

    async def handle_successful_payment(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        t('payments.telegram_checkout.TelegramInvoiceGateway.handle_successful_payment')
        payment = update.message.successful_payment
        payment_id = payment.provider_payment_charge_id or payment.telegram_payment_charge_id
        if not self._settle(payment.invoice_payload, Succeeded(payment_id=payment_id)):
            # Money was taken for an order nobody is waiting on any more.
            logger.error(
                "RECONCILIATION REQUIRED: payment captured for inactive order %s "
                "(provider_charge=%s, telegram_charge=%s, amount=%s %s)",
                payment.invoice_payload,
                payment.provider_payment_charge_id,
                payment.telegram_payment_charge_id,
                payment.total_amount,
                payment.currency,
            )

    async def handle_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        t('payments.telegram_checkout.TelegramInvoiceGateway.handle_cancel')
        query = update.callback_query
        await query.answer()
        order_id = (query.data or "")[len(CANCEL_CALLBACK_PREFIX):]
        self._settle(order_id, Cancelled())

    def register_handlers(self, application: Application) -> None:
        t('payments.telegram_checkout.TelegramInvoiceGateway.register_handlers')
        application.add_handler(PreCheckoutQueryHandler(self.handle_pre_checkout))
        application.add_handler(
            MessageHandler(filters.SUCCESSFUL_PAYMENT, self.handle_successful_payment)
        )
        application.add_handler(
            CallbackQueryHandler(self.handle_cancel, pattern=f"^{CANCEL_CALLBACK_PREFIX}")
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _settle(self, order_id: str, outcome: PaymentOutcome) -> bool:
        t('payments.telegram_checkout.TelegramInvoiceGateway._settle')
        pending: Optional[_PendingInvoice] = self._pending.get(order_id)
        if pending is None or pending.future.done():
            logger.debug("Ignoring outcome for inactive order %s", order_id)
            return False
        pending.future.set_result(outcome)
        return True

    @staticmethod
    def _invoice_keyboard(intent: OrderIntent, exponent: int) -> InlineKeyboardMarkup:
        t('payments.telegram_checkout.TelegramInvoiceGateway._invoice_keyboard')
        amount = format_amount(from_minor_units(intent.amount_minor, exponent), intent.currency, exponent)
        # Telegram requires the pay button to be the first button of the first row.
        return InlineKeyboardMarkup(
            [
                [InlineKeyboardButton(f"Pay {amount}", pay=True)],
                [InlineKeyboardButton("Cancel", callback_data=f"{CANCEL_CALLBACK_PREFIX}{intent.order_id}")],
            ]
        )
