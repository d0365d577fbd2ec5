"""Tagged payment outcome produced once per order intent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Succeeded:
    """Gateway captured the payment."""

    payment_id: str


@dataclass(frozen=True)
class Failed:
    """Gateway declined or errored (also used for an expired deadline)."""

    reason: str


@dataclass(frozen=True)
class Cancelled:
    """User dismissed the checkout."""


PaymentOutcome = Union[Succeeded, Failed, Cancelled]

__all__ = ["PaymentOutcome", "Succeeded", "Failed", "Cancelled"]
