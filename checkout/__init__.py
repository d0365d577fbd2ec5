"""Checkout orchestration: payment, booking commit, reconciliation."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .committer import BookingCommitter, CommitResult
    from .orchestrator import CheckoutResult, PaymentOrchestrator
    from .reconciliation import ReconciliationNotice, ReconciliationReporter
    from .service import CheckoutService, build_checkout_service
    from .states import CheckoutState

__all__ = [
    "BookingCommitter",
    "CommitResult",
    "CheckoutResult",
    "PaymentOrchestrator",
    "ReconciliationNotice",
    "ReconciliationReporter",
    "CheckoutService",
    "build_checkout_service",
    "CheckoutState",
]

_MODULES = {
    "BookingCommitter": ".committer",
    "CommitResult": ".committer",
    "CheckoutResult": ".orchestrator",
    "PaymentOrchestrator": ".orchestrator",
    "ReconciliationNotice": ".reconciliation",
    "ReconciliationReporter": ".reconciliation",
    "CheckoutService": ".service",
    "build_checkout_service": ".service",
    "CheckoutState": ".states",
}


def __getattr__(name: str):
    module_name = _MODULES.get(name)
    if module_name is None:
        raise AttributeError(name)
    module = import_module(module_name, __name__)
    return getattr(module, name)
