"""Centralized application settings.

A single place to load runtime configuration values. Components receive an
:class:`AppSettings` snapshot instead of reading ``os.environ`` themselves.
"""

from __future__ import annotations
from tracking import t

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from dotenv import load_dotenv

from . import constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""
    t('infrastructure.settings._to_bool')

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    t('infrastructure.settings._to_int')
    if value is None:
        return default
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return default


def _to_float(value: Optional[str], default: float) -> float:
    t('infrastructure.settings._to_float')
    if value is None:
        return default
    try:
        return float(value.strip())
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    backend_url: str
    api_token: str
    request_timeout_seconds: float
    gateway_key: str
    merchant_name: str
    currency: str
    currency_exponent: int
    payment_timeout_seconds: float
    booking_timeout_seconds: float
    default_country_code: str
    checkout_platform: str
    checkout_script_url: str
    checkout_headless: bool
    telegram_bot_token: str
    telegram_provider_token: str
    timezone: str
    support_contact: str
    production_mode: bool
    log_directory: str


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""
    t('infrastructure.settings.load_settings')

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    checkout_platform = env.get(
        "CHECKOUT_PLATFORM", constants.CHECKOUT_PLATFORM_HOSTED
    ).strip().lower()
    if checkout_platform not in constants.CHECKOUT_PLATFORMS:
        checkout_platform = constants.CHECKOUT_PLATFORM_HOSTED

    return AppSettings(
        backend_url=env.get("BOOKING_API_URL", "https://admin.bookvenue.app/api").rstrip("/"),
        api_token=env.get("BOOKING_API_TOKEN", ""),
        request_timeout_seconds=_to_float(env.get("BOOKING_API_TIMEOUT"), 30.0),
        gateway_key=env.get("PAYMENT_GATEWAY_KEY", ""),
        merchant_name=env.get("PAYMENT_MERCHANT_NAME", "BookVenue"),
        currency=env.get("PAYMENT_CURRENCY", "INR").upper(),
        currency_exponent=_to_int(env.get("PAYMENT_CURRENCY_EXPONENT"), 2),
        payment_timeout_seconds=_to_float(env.get("PAYMENT_TIMEOUT_SECONDS"), 600.0),
        booking_timeout_seconds=_to_float(env.get("BOOKING_CREATE_TIMEOUT_SECONDS"), 60.0),
        default_country_code=env.get("DEFAULT_COUNTRY_CODE", "+91"),
        checkout_platform=checkout_platform,
        checkout_script_url=env.get("CHECKOUT_SCRIPT_URL", constants.DEFAULT_CHECKOUT_SCRIPT_URL),
        checkout_headless=_to_bool(env.get("CHECKOUT_HEADLESS"), default=False),
        telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        telegram_provider_token=env.get("TELEGRAM_PROVIDER_TOKEN", ""),
        timezone=env.get("VENUE_TIMEZONE", "Asia/Kolkata"),
        support_contact=env.get("SUPPORT_CONTACT", "support@bookvenue.app"),
        production_mode=_to_bool(env.get("PRODUCTION_MODE"), default=False),
        log_directory=env.get("LOG_DIRECTORY", os.path.join("logs", "latest_log")),
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""
    t('infrastructure.settings.get_settings')

    return load_settings()
