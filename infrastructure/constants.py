"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for values that are not environment-driven
PATTERN: Modular constants organized by category
SCOPE: Slot derivation, checkout, and backend endpoint paths
"""
from tracking import t

# Backend endpoints (relative to the configured API base URL)
BOOKING_ENDPOINT = "/booking"
BOOKING_DETAIL_ENDPOINT = "/booking/{booking_id}"
MY_BOOKINGS_ENDPOINT = "/my-bookings"
CANCEL_BOOKING_ENDPOINT = "/cancel-booking/{booking_id}"
PAYMENT_SUCCESS_ENDPOINT = "/booking/payment-success"
PAYMENT_FAILURE_ENDPOINT = "/booking/payment-failure"

# Slot derivation
DEFAULT_SLOT_DURATION_MINUTES = 60
MINUTES_PER_DAY = 24 * 60
SLOT_TIME_FORMAT = "{hour:02d}:{minute:02d}"

# Checkout
PAYMENT_METHOD = "razorpay"
ORDER_ID_PREFIX = "order"
RECENT_ORDER_ID_WINDOW = 1024
CHECKOUT_THEME_COLOR = "#2563EB"
CHECKOUT_PLATFORM_HOSTED = "hosted"
CHECKOUT_PLATFORM_EMBEDDED = "embedded"
CHECKOUT_PLATFORMS = (CHECKOUT_PLATFORM_HOSTED, CHECKOUT_PLATFORM_EMBEDDED)
DEFAULT_CHECKOUT_SCRIPT_URL = "https://checkout.razorpay.com/v1/checkout.js"

# Buyer contact
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
LOCAL_PHONE_DIGITS = 10

# Booking status values stored by the backend
BOOKING_STATUS_PENDING = "pending"
BOOKING_STATUS_CONFIRMED = "confirmed"
BOOKING_STATUS_CANCELLED = "cancelled"


def endpoint(template: str, **params: object) -> str:
    """Fill an endpoint template such as ``BOOKING_DETAIL_ENDPOINT``."""
    t('infrastructure.constants.endpoint')
    return template.format(**params)
