"""Single home for money rounding.

Both the charged amount (minor units sent to the gateway) and any displayed
total go through :func:`quantize`, so the two can never disagree.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from tracking import t

Number = Union[Decimal, int, str, float]

_CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def _as_decimal(amount: Number) -> Decimal:
    t('payments.amounts._as_decimal')
    if isinstance(amount, bool):
        raise ValueError(f"Not an amount: {amount!r}")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not an amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Not an amount: {amount!r}")
    return value


def quantize(amount: Number, exponent: int = 2) -> Decimal:
    """Round half-up to the currency's minor unit."""
    t('payments.amounts.quantize')
    step = Decimal(1).scaleb(-exponent)
    return _as_decimal(amount).quantize(step, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Number, exponent: int = 2) -> int:
    """Convert a decimal total into integer minor units (e.g. rupees to paise)."""
    t('payments.amounts.to_minor_units')
    return int(quantize(amount, exponent).scaleb(exponent))


def from_minor_units(minor: int, exponent: int = 2) -> Decimal:
    t('payments.amounts.from_minor_units')
    return Decimal(int(minor)).scaleb(-exponent)


def format_amount(amount: Number, currency: str = "INR", exponent: int = 2) -> str:
    """Human readable amount, e.g. ``₹1,500.00``."""
    t('payments.amounts.format_amount')
    value = quantize(amount, exponent)
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    text = f"{value:,.{exponent}f}"
    return f"{symbol}{text}" if symbol else f"{text} {currency.upper()}"


def line_total(unit_price: Number, count: int, exponent: int = 2) -> Decimal:
    """Total for ``count`` units: the unit price is rounded first, then multiplied.

    Shared by the displayed selection total and the charged request total.
    """
    t('payments.amounts.line_total')
    return quantize(quantize(unit_price, exponent) * int(count), exponent)
