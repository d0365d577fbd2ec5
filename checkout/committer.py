"""Persist bookings for a captured payment and acknowledge settlement."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from backend_api.client import BackendError
from reservations.contracts import Booking, BookingPayload, BookingRequestSet

from .errors import ReportingError
from .reconciliation import ReconciliationNotice, ReconciliationReporter


class BookingBackend(Protocol):
    """Subset of the backend client used by the checkout workflow."""

    async def create_booking(self, payload: Dict[str, Any]) -> Booking: ...  # pragma: no cover - interface

    async def report_payment_success(self, order_id: str, payment_id: str) -> Any: ...  # pragma: no cover - interface

    async def report_payment_failure(self, order_id: str) -> Any: ...  # pragma: no cover - interface


@dataclass(frozen=True)
class CommitResult:
    """Outcome of one commit: created bookings and per-slot failures."""

    created: Tuple[Booking, ...]
    failures: Tuple[Tuple[int, str], ...]
    settled: bool = False
    notice: Optional[ReconciliationNotice] = None

    @property
    def succeeded(self) -> bool:
        return not self.failures


class BookingCommitter:
    """Create one booking per payload after the gateway captured the payment."""

    def __init__(
        self,
        backend: BookingBackend,
        reporter: ReconciliationReporter,
        *,
        timeout_seconds: float = 60.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('checkout.committer.BookingCommitter.__init__')
        self.backend = backend
        self.reporter = reporter
        self.timeout_seconds = timeout_seconds
        self.logger = logger or logging.getLogger('BookingCommitter')

    async def commit(
        self,
        request_set: BookingRequestSet,
        *,
        order_id: str,
        payment_id: str,
    ) -> CommitResult:
        """Create every booking, then report success or hand off to reconciliation."""
        t('checkout.committer.BookingCommitter.commit')

        multi_slot = request_set.is_multi_slot
        bodies = [
            payload.to_request(
                order_id=order_id,
                payment_id=payment_id,
                index=index,
                multi_slot=multi_slot,
            )
            for index, payload in enumerate(request_set.payloads)
        ]

        if multi_slot:
            created, failures = await self._create_concurrently(request_set.payloads, bodies)
        else:
            created, failures = await self._create_single(request_set.payloads[0], bodies[0])

        if failures:
            self.logger.error(
                "Order %s: %s of %s booking(s) failed after payment %s",
                order_id,
                len(failures),
                request_set.slot_count,
                payment_id,
            )
            notice = self.reporter.report(
                order_id=order_id,
                payment_id=payment_id,
                requested=request_set.slot_count,
                created=len(created),
                failures=[reason for _, reason in failures],
            )
            return CommitResult(
                created=tuple(created),
                failures=tuple(failures),
                settled=False,
                notice=notice,
            )

        settled = await self._report_success(order_id, payment_id)
        self.logger.info(
            "Order %s: created %s booking(s) for payment %s",
            order_id,
            len(created),
            payment_id,
        )
        return CommitResult(created=tuple(created), failures=(), settled=settled)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _create_single(
        self,
        payload: BookingPayload,
        body: Dict[str, Any],
    ) -> Tuple[List[Booking], List[Tuple[int, str]]]:
        t('checkout.committer.BookingCommitter._create_single')
        try:
            booking = await asyncio.wait_for(
                self.backend.create_booking(body),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return [], [(0, self._slot_error(payload, f"timed out after {self.timeout_seconds} seconds"))]
        except BackendError as exc:
            return [], [(0, self._slot_error(payload, str(exc)))]
        except Exception as exc:  # pragma: no cover - unexpected backend error
            self.logger.error("Booking task raised: %s", exc)
            return [], [(0, self._slot_error(payload, str(exc)))]
        return [booking], []

    async def _create_concurrently(
        self,
        payloads: Tuple[BookingPayload, ...],
        bodies: List[Dict[str, Any]],
    ) -> Tuple[List[Booking], List[Tuple[int, str]]]:
        t('checkout.committer.BookingCommitter._create_concurrently')

        task_map: Dict[asyncio.Task, int] = {}
        for index, body in enumerate(bodies):
            task = asyncio.create_task(
                self.backend.create_booking(body),
                name=f"create-booking-{index}",
            )
            task_map[task] = index

        done, pending = await asyncio.wait(
            list(task_map.keys()),
            return_when=asyncio.ALL_COMPLETED,
            timeout=self.timeout_seconds,
        )

        outcomes: Dict[int, Any] = {}
        if pending:
            self.logger.warning("Found %s hanging booking tasks - cancelling them", len(pending))
            for task in pending:
                task.cancel()
                outcomes[task_map[task]] = f"timed out after {self.timeout_seconds} seconds"
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            index = task_map[task]
            try:
                outcomes[index] = task.result()
            except BackendError as exc:
                outcomes[index] = str(exc)
            except Exception as exc:  # pragma: no cover - unexpected backend error
                self.logger.error("Booking task %s raised: %s", index, exc)
                outcomes[index] = str(exc)

        created: List[Booking] = []
        failures: List[Tuple[int, str]] = []
        for index in sorted(outcomes):
            outcome = outcomes[index]
            if isinstance(outcome, Booking):
                created.append(outcome)
            else:
                failures.append((index, self._slot_error(payloads[index], outcome)))
        return created, failures

    async def _report_success(self, order_id: str, payment_id: str) -> bool:
        t('checkout.committer.BookingCommitter._report_success')
        try:
            await self.backend.report_payment_success(order_id, payment_id)
        except BackendError as exc:
            error = ReportingError(order_id, "payment success", str(exc))
            self.logger.error("%s", error)
            return False
        return True

    @staticmethod
    def _slot_error(payload: BookingPayload, reason: str) -> str:
        t('checkout.committer.BookingCommitter._slot_error')
        return f"{payload.booking_date.isoformat()} {payload.slot}: {reason}"


__all__ = ["BookingBackend", "BookingCommitter", "CommitResult"]
