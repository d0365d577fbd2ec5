"""Reporting of captured payments whose bookings could not be created."""

from __future__ import annotations
from tracking import t

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from telegram.helpers import escape_markdown

RECONCILIATION_HEADER = "⚠️ Payment received, booking not confirmed"


def _md(text: object) -> str:
    return escape_markdown(str(text), version=2)


def _md_code(text: object) -> str:
    # Inside a code span only backslash and backtick are special.
    return f"`{escape_markdown(str(text), version=2, entity_type='code')}`"


@dataclass(frozen=True)
class ReconciliationNotice:
    """User-facing account of a payment that has no complete set of bookings.

    ``message`` is Telegram MarkdownV2; ``summary`` is a single plain line
    suitable for logs and exception text.
    """

    order_id: str
    payment_id: str
    requested: int
    created: int
    failures: Tuple[str, ...]
    support_contact: str
    message: str
    summary: str

    @property
    def partial(self) -> bool:
        return 0 < self.created < self.requested


class ReconciliationReporter:
    """Turn a booking-creation failure after payment into a support notice.

    The notice never suggests retrying: the payment is already captured and a
    second checkout would charge the buyer again.
    """

    def __init__(self, support_contact: str, *, logger: Optional[logging.Logger] = None) -> None:
        t('checkout.reconciliation.ReconciliationReporter.__init__')
        self.support_contact = support_contact
        self.logger = logger or logging.getLogger('ReconciliationReporter')

    def report(
        self,
        *,
        order_id: str,
        payment_id: str,
        requested: int,
        created: int,
        failures: Sequence[str],
    ) -> ReconciliationNotice:
        t('checkout.reconciliation.ReconciliationReporter.report')

        summary = (
            f"Payment {payment_id} for order {order_id} was captured but "
            f"{requested - created} of {requested} booking(s) could not be created"
        )
        self.logger.error("RECONCILIATION REQUIRED: %s; errors=%s", summary, list(failures))

        return ReconciliationNotice(
            order_id=order_id,
            payment_id=payment_id,
            requested=requested,
            created=created,
            failures=tuple(failures),
            support_contact=self.support_contact,
            message=self._compose_message(order_id, payment_id, requested, created, failures),
            summary=summary,
        )

    def _compose_message(
        self,
        order_id: str,
        payment_id: str,
        requested: int,
        created: int,
        failures: Sequence[str],
    ) -> str:
        t('checkout.reconciliation.ReconciliationReporter._compose_message')

        if created:
            missing = f"{requested - created} of your {requested} bookings."
        elif requested == 1:
            missing = "your booking."
        else:
            missing = "your bookings."

        lines: List[str] = [
            f"*{_md(RECONCILIATION_HEADER)}*",
            _md(f"Your payment was received, but we could not confirm {missing}"),
            "",
            f"• {_md('Payment ID')}: {_md_code(payment_id)}",
            f"• {_md('Order ID')}: {_md_code(order_id)}",
        ]
        if failures:
            lines.append("")
            lines.extend(f"• {_md(reason)}" for reason in failures if reason)
        lines.extend(
            [
                "",
                _md(
                    f"Please do not pay again. Contact {self.support_contact} "
                    "with the payment and order IDs above so we can resolve this for you."
                ),
            ]
        )
        return "\n".join(lines)
