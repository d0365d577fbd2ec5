from tracking import t

import pytest

from checkout.errors import ValidationError
from payments.contact import normalise_phone, validate_contact
from reservations.contracts import BuyerContact


def test_local_number_gets_country_code():
    t('tests.unit.test_contact.test_local_number_gets_country_code')
    assert normalise_phone("98765 43210") == "+919876543210"
    assert normalise_phone("(987) 654-3210", "+1") == "+19876543210"


def test_number_with_country_code_is_untouched():
    assert normalise_phone("+91 98765 43210") == "+91 98765 43210"


def test_other_lengths_are_stripped_to_digits():
    assert normalise_phone("0044 20 7946 0958") == "00442079460958"


def test_validate_contact_normalises_phone_and_trims():
    contact = validate_contact(BuyerContact(name=" Asha ", email="asha@example.com ", phone="9876543210"))

    assert contact == BuyerContact(name="Asha", email="asha@example.com", phone="+919876543210")


@pytest.mark.parametrize("phone", ["", "   ", None])
def test_missing_phone_is_rejected(phone):
    with pytest.raises(ValidationError) as excinfo:
        validate_contact(BuyerContact(name="A", email="a@b.c", phone=phone))

    assert excinfo.value.field == "phone"


@pytest.mark.parametrize("phone", ["12345", "1234567890123456789"])
def test_implausible_phone_length_is_rejected(phone):
    with pytest.raises(ValidationError, match="Phone number too"):
        validate_contact(BuyerContact(name="A", email="a@b.c", phone=phone))
