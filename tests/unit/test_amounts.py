from decimal import Decimal

import pytest

from payments.amounts import format_amount, from_minor_units, line_total, quantize, to_minor_units


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("1500"), 150000),
        ("499.995", 50000),
        (Decimal("0.005"), 1),
        (Decimal("10.004"), 1000),
        (12, 1200),
    ],
)
def test_to_minor_units_rounds_half_up(amount, expected):
    assert to_minor_units(amount) == expected


def test_zero_exponent_currency():
    assert to_minor_units(Decimal("1500.5"), exponent=0) == 1501
    assert from_minor_units(1501, exponent=0) == Decimal("1501")


def test_display_and_charge_agree():
    amount = Decimal("1234.565")

    assert format_amount(amount) == "₹1,234.57"
    assert to_minor_units(amount) == 123457
    assert from_minor_units(to_minor_units(amount)) == quantize(amount)


def test_unknown_currency_is_suffixed():
    assert format_amount(Decimal("20"), currency="sgd") == "20.00 SGD"


@pytest.mark.parametrize("bad", ["abc", True, float("nan")])
def test_non_amounts_are_rejected(bad):
    with pytest.raises(ValueError):
        to_minor_units(bad)


def test_line_total_rounds_unit_price_before_multiplying():
    assert line_total(Decimal("333.335"), 3) == Decimal("1000.02")
    assert line_total("500", 3) == Decimal("1500.00")
    assert line_total(Decimal("10.5"), 2, exponent=0) == Decimal("22")
