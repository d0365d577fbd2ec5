"""The payment gateway capability and the checkout options it receives."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from infrastructure.constants import (
    CHECKOUT_PLATFORM_EMBEDDED,
    CHECKOUT_PLATFORM_HOSTED,
    CHECKOUT_THEME_COLOR,
)
from infrastructure.settings import AppSettings
from reservations.contracts import OrderIntent

from .outcomes import PaymentOutcome

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from telegram import Bot

    from .browser_handle import CheckoutBrowserHandle


@dataclass(frozen=True)
class CheckoutDisplay:
    """What the buyer sees about the purchase, plus where to reach them."""

    venue_name: str
    court_name: str
    booking_date: str
    slot_count: int
    chat_id: Optional[int] = None


@dataclass(frozen=True)
class CheckoutOptions:
    """Gateway-facing description of one checkout."""

    key: str
    order_id: str
    amount: int
    currency: str
    name: str
    description: str
    prefill: Dict[str, str]
    notes: Dict[str, str] = field(default_factory=dict)
    theme_color: str = CHECKOUT_THEME_COLOR
    chat_id: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        """Options object understood by the hosted checkout script."""

        return {
            "key": self.key,
            "amount": self.amount,
            "currency": self.currency,
            "name": self.name,
            "description": self.description,
            "prefill": dict(self.prefill),
            "notes": dict(self.notes),
            "theme": {"color": self.theme_color},
        }


class PaymentGateway(Protocol):
    """Opens a checkout for an intent and resolves exactly one outcome."""

    def validate_display(self, display: CheckoutDisplay) -> None:  # pragma: no cover - interface
        """Raise ``ValidationError`` when the gateway cannot be opened for ``display``."""
        ...

    async def open(self, intent: OrderIntent, options: CheckoutOptions) -> PaymentOutcome:  # pragma: no cover - interface
        ...


def build_checkout_options(
    intent: OrderIntent,
    display: CheckoutDisplay,
    *,
    settings: AppSettings,
) -> CheckoutOptions:
    """Describe the checkout for ``intent``; the amount comes from the intent only."""
    t('payments.gateway.build_checkout_options')

    if display.slot_count > 1:
        description = f"{display.slot_count} slots at {display.venue_name}"
    else:
        description = f"{display.court_name} at {display.venue_name}"

    return CheckoutOptions(
        key=settings.gateway_key,
        order_id=intent.order_id,
        amount=intent.amount_minor,
        currency=intent.currency,
        name=settings.merchant_name,
        description=description,
        prefill={
            "name": intent.contact.name,
            "email": intent.contact.email,
            "contact": intent.contact.phone,
        },
        notes={
            "venue_name": display.venue_name,
            "court_name": display.court_name,
            "booking_date": display.booking_date,
            "total_slots": str(display.slot_count),
            "order_id": intent.order_id,
            "platform": settings.checkout_platform,
        },
        chat_id=display.chat_id,
    )


def select_gateway(
    settings: AppSettings,
    *,
    bot: Optional["Bot"] = None,
    browser_handle: Optional["CheckoutBrowserHandle"] = None,
) -> PaymentGateway:
    """Pick the gateway variant for the configured platform."""
    t('payments.gateway.select_gateway')

    if settings.checkout_platform == CHECKOUT_PLATFORM_EMBEDDED:
        from telegram import Bot

        from .telegram_checkout import TelegramInvoiceGateway

        return TelegramInvoiceGateway(
            bot or Bot(settings.telegram_bot_token),
            provider_token=settings.telegram_provider_token,
            currency_exponent=settings.currency_exponent,
        )

    if settings.checkout_platform == CHECKOUT_PLATFORM_HOSTED:
        from .browser_handle import CheckoutBrowserHandle
        from .hosted_checkout import HostedCheckoutGateway

        return HostedCheckoutGateway(
            browser_handle or CheckoutBrowserHandle(headless=settings.checkout_headless),
            script_url=settings.checkout_script_url,
        )

    raise ValueError(f"Unknown checkout platform: {settings.checkout_platform!r}")
