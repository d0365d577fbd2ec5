"""HTTP client for the booking backend."""

from __future__ import annotations
from tracking import t

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from infrastructure.constants import (
    BOOKING_DETAIL_ENDPOINT,
    BOOKING_ENDPOINT,
    CANCEL_BOOKING_ENDPOINT,
    MY_BOOKINGS_ENDPOINT,
    PAYMENT_FAILURE_ENDPOINT,
    PAYMENT_SUCCESS_ENDPOINT,
    endpoint,
)
from infrastructure.settings import AppSettings
from reservations.contracts import Booking

from .serializers import booking_from_record, bookings_from_list, unwrap_booking


class BackendError(Exception):
    """Base error for backend request failures."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendAuthError(BackendError):
    """Raised when backend rejects authentication."""


class BackendNotFoundError(BackendError):
    """Raised when backend resource is not found."""


class BackendConnectionError(BackendError):
    """Raised when backend connection fails or times out."""


class BackendRequestError(BackendError):
    """Raised for non-auth backend errors, e.g. a slot that is already taken."""


logger = logging.getLogger(__name__)


def _backend_message(response: httpx.Response, default: str) -> str:
    t('backend_api.client._backend_message')
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    return default


class BookingBackendClient:
    """Async client for booking creation and payment status reporting."""

    def __init__(
        self,
        settings: AppSettings,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        t('backend_api.client.BookingBackendClient.__init__')
        self.settings = settings
        self.http = http or httpx.AsyncClient(
            base_url=settings.backend_url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
        )

    async def aclose(self) -> None:
        t('backend_api.client.BookingBackendClient.aclose')
        await self.http.aclose()

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        t('backend_api.client.BookingBackendClient.call')
        headers: Dict[str, str] = {}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"

        try:
            response = await self.http.request(
                method,
                path,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise BackendConnectionError(f"Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendConnectionError(f"Connection to backend failed: {exc}") from exc

        status = response.status_code
        if status in {401, 403}:
            raise BackendAuthError(_backend_message(response, "Not authorised"), status_code=status)
        if status == 404:
            raise BackendNotFoundError(_backend_message(response, "Not found"), status_code=status)
        if status >= 400:
            raise BackendRequestError(
                _backend_message(response, f"Backend error {status}"),
                status_code=status,
            )

        try:
            return response.json()
        except ValueError:
            return {"status_code": status, "text": response.text}

    # ------------------------------------------------------------------
    # Checkout endpoints
    # ------------------------------------------------------------------
    async def create_booking(self, payload: Dict[str, Any]) -> Booking:
        """Create one booking; ``payload`` is one slot's request body."""
        t('backend_api.client.BookingBackendClient.create_booking')
        logger.debug("Creating booking %s %s-%s", payload.get("date"), payload.get("start_time"), payload.get("end_time"))
        data = await self.call("POST", BOOKING_ENDPOINT, json=payload)
        if isinstance(data, Mapping) and data.get("success") is False:
            raise BackendRequestError(str(data.get("message") or "Booking was rejected"))
        return booking_from_record(unwrap_booking(data), fallback=payload)

    async def report_payment_success(self, order_id: str, payment_id: str) -> Any:
        t('backend_api.client.BookingBackendClient.report_payment_success')
        return await self.call(
            "POST",
            PAYMENT_SUCCESS_ENDPOINT,
            json={"order_id": order_id, "payment_id": payment_id},
        )

    async def report_payment_failure(self, order_id: str) -> Any:
        t('backend_api.client.BookingBackendClient.report_payment_failure')
        return await self.call("POST", PAYMENT_FAILURE_ENDPOINT, json={"order_id": order_id})

    # ------------------------------------------------------------------
    # Booking history
    # ------------------------------------------------------------------
    async def list_bookings(self) -> List[Booking]:
        t('backend_api.client.BookingBackendClient.list_bookings')
        data = await self.call("GET", MY_BOOKINGS_ENDPOINT)
        bookings = bookings_from_list(data)
        if not bookings:
            logger.info("No bookings found or invalid format")
        return bookings

    async def get_booking(self, booking_id: str) -> Booking:
        t('backend_api.client.BookingBackendClient.get_booking')
        data = await self.call("GET", endpoint(BOOKING_DETAIL_ENDPOINT, booking_id=booking_id))
        record = data.get("booking") if isinstance(data, Mapping) else None
        if not isinstance(record, Mapping):
            raise BackendNotFoundError(f"Booking {booking_id} not found")
        return booking_from_record(record, fallback={"id": booking_id})

    async def cancel_booking(self, booking_id: str) -> Any:
        """Ask the backend to cancel a booking. No refund is implied."""
        t('backend_api.client.BookingBackendClient.cancel_booking')
        return await self.call("POST", endpoint(CANCEL_BOOKING_ENDPOINT, booking_id=booking_id))
