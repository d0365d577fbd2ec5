"""Buyer contact normalisation and the pre-gateway phone check."""

from __future__ import annotations

from checkout.errors import ValidationError
from infrastructure.constants import LOCAL_PHONE_DIGITS, MAX_PHONE_DIGITS, MIN_PHONE_DIGITS
from reservations.contracts import BuyerContact
from tracking import t


def normalise_phone(phone: str, country_code: str = "+91") -> str:
    """Format a phone number for gateway prefill.

    Numbers already carrying ``country_code`` are left alone. Otherwise
    non-digits are stripped, and a bare local number gets the country code.
    """
    t('payments.contact.normalise_phone')

    contact = (phone or "").strip()
    if not contact or contact.startswith(country_code):
        return contact

    digits = "".join(c for c in contact if c.isdigit())
    if len(digits) == LOCAL_PHONE_DIGITS:
        return f"{country_code}{digits}"
    return digits


def validate_contact(contact: BuyerContact, *, country_code: str = "+91") -> BuyerContact:
    """Return the contact with a normalised phone, or raise ``ValidationError``.

    The phone must be present and have a plausible number of digits.
    """
    t('payments.contact.validate_contact')

    raw_phone = (contact.phone or "").strip()
    if not raw_phone:
        raise ValidationError("A contact phone number is required for payment", field="phone")

    phone = normalise_phone(raw_phone, country_code)
    digit_count = sum(1 for c in phone if c.isdigit())
    if digit_count < MIN_PHONE_DIGITS:
        raise ValidationError(
            f"Phone number too short. Got {digit_count} digits, need at least {MIN_PHONE_DIGITS}.",
            field="phone",
        )
    if digit_count > MAX_PHONE_DIGITS:
        raise ValidationError(
            f"Phone number too long. Got {digit_count} digits, at most {MAX_PHONE_DIGITS} allowed.",
            field="phone",
        )

    return BuyerContact(
        name=(contact.name or "").strip(),
        email=(contact.email or "").strip(),
        phone=phone,
    )
