"""Client for the booking backend."""

from .client import (
    BackendAuthError,
    BackendConnectionError,
    BackendError,
    BackendNotFoundError,
    BackendRequestError,
    BookingBackendClient,
)

__all__ = [
    "BackendAuthError",
    "BackendConnectionError",
    "BackendError",
    "BackendNotFoundError",
    "BackendRequestError",
    "BookingBackendClient",
]
