"""Error taxonomy for the checkout workflow.

Every terminal failure of a checkout attempt surfaces as exactly one of these
classes so callers can tell them apart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from checkout.reconciliation import ReconciliationNotice
    from reservations.contracts import Booking


class CheckoutError(Exception):
    """Base class for checkout failures."""


class ValidationError(CheckoutError, ValueError):
    """Malformed selection or buyer contact, detected before any network call."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class GatewayError(CheckoutError):
    """The payment gateway declined, errored, or timed out."""

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(f"Payment failed for order {order_id}: {reason}")
        self.order_id = order_id
        self.reason = reason


class BookingCreationError(CheckoutError):
    """Payment was captured but at least one booking could not be created."""

    def __init__(
        self,
        notice: "ReconciliationNotice",
        *,
        created: Sequence["Booking"] = (),
        failures: Sequence[Tuple[int, str]] = (),
    ) -> None:
        super().__init__(notice.summary)
        self.notice = notice
        self.order_id = notice.order_id
        self.payment_id = notice.payment_id
        self.created = tuple(created)
        self.failures = tuple(failures)


class ReportingError(CheckoutError):
    """A payment status acknowledgment to the backend failed."""

    def __init__(self, order_id: str, endpoint: str, reason: str) -> None:
        super().__init__(f"Could not report {endpoint} for order {order_id}: {reason}")
        self.order_id = order_id
        self.endpoint = endpoint
        self.reason = reason
