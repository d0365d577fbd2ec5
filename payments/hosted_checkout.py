"""Hosted checkout rendered in a Playwright page.

The gateway's checkout script runs inside a page we own. Its success,
dismiss and failure callbacks call back into Python through an exposed
binding, which settles a future with the matching outcome.
"""

from __future__ import annotations
from tracking import t

import asyncio
import html
import json
import logging
from typing import Optional

from reservations.contracts import OrderIntent

from .browser_handle import CheckoutBrowserHandle
from .gateway import CheckoutDisplay, CheckoutOptions
from .outcomes import Cancelled, Failed, PaymentOutcome, Succeeded

logger = logging.getLogger(__name__)

BRIDGE_NAME = "courtpayCheckoutEvent"

EVENT_SUCCESS = "success"
EVENT_DISMISS = "dismiss"
EVENT_FAILED = "failed"
EVENT_ERROR = "error"

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<script>
function courtpayEmit(event, detail) {{
  window.{bridge}(event, detail || "");
}}
function courtpayOpen() {{
  var options = {options};
  options.handler = function (response) {{
    courtpayEmit("{success}", response.razorpay_payment_id);
  }};
  options.modal = {{ ondismiss: function () {{ courtpayEmit("{dismiss}", ""); }} }};
  var checkout = new Razorpay(options);
  checkout.on("payment.failed", function (response) {{
    var error = response && response.error ? response.error.description : "";
    courtpayEmit("{failed}", error);
  }});
  checkout.open();
}}
</script>
<script src="{script_url}" onload="courtpayOpen()"
        onerror="courtpayEmit('{error}', 'Failed to load checkout script')"></script>
</body>
</html>
"""


def render_checkout_page(options: CheckoutOptions, *, script_url: str) -> str:
    """Return the HTML that loads the checkout script and opens it."""
    t('payments.hosted_checkout.render_checkout_page')
    # Escape "</" so option strings cannot close the inline script early.
    options_json = json.dumps(options.as_dict()).replace("</", "<\\/")
    return _PAGE_TEMPLATE.format(
        title=html.escape(options.name),
        bridge=BRIDGE_NAME,
        options=options_json,
        script_url=html.escape(script_url, quote=True),
        success=EVENT_SUCCESS,
        dismiss=EVENT_DISMISS,
        failed=EVENT_FAILED,
        error=EVENT_ERROR,
    )


def outcome_from_event(event: str, detail: Optional[str]) -> PaymentOutcome:
    """Translate a checkout script callback into a payment outcome."""
    t('payments.hosted_checkout.outcome_from_event')

    detail = (detail or "").strip()
    if event == EVENT_SUCCESS:
        if detail:
            return Succeeded(payment_id=detail)
        return Failed(reason="Gateway reported success without a payment id")
    if event == EVENT_DISMISS:
        return Cancelled()
    if event == EVENT_FAILED:
        return Failed(reason=detail or "Payment failed")
    if event == EVENT_ERROR:
        return Failed(reason=detail or "Checkout error")
    return Failed(reason=f"Unexpected checkout event: {event}")


class HostedCheckoutGateway:
    """Gateway variant that drives the hosted checkout script in a browser page."""

    def __init__(self, browser_handle: CheckoutBrowserHandle, *, script_url: str) -> None:
        t('payments.hosted_checkout.HostedCheckoutGateway.__init__')
        self._handle = browser_handle
        self._script_url = script_url

    def validate_display(self, display: CheckoutDisplay) -> None:
        # The hosted page needs nothing beyond the checkout options.
        t('payments.hosted_checkout.HostedCheckoutGateway.validate_display')

    async def open(self, intent: OrderIntent, options: CheckoutOptions) -> PaymentOutcome:
        t('payments.hosted_checkout.HostedCheckoutGateway.open')

        loop = asyncio.get_running_loop()
        result: "asyncio.Future[PaymentOutcome]" = loop.create_future()

        def settle(event: str, detail: Optional[str] = None) -> None:
            t('payments.hosted_checkout.HostedCheckoutGateway.open.settle')
            if result.done():
                return
            outcome = outcome_from_event(event, detail)
            logger.info("Hosted checkout %s resolved: %s", intent.order_id, event)
            result.set_result(outcome)

        async with self._handle.session() as browser:
            context = await browser.new_context()
            try:
                page = await context.new_page()
                await page.expose_function(BRIDGE_NAME, settle)
                # Closing the checkout window is a dismissal.
                page.on("close", lambda _page: settle(EVENT_DISMISS))
                await page.set_content(render_checkout_page(options, script_url=self._script_url))
                return await result
            finally:
                await context.close()

    async def close(self) -> None:
        t('payments.hosted_checkout.HostedCheckoutGateway.close')
        await self._handle.close()
