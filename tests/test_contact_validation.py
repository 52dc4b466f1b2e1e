"""Contact validation tests.

Phone rules are carrier specific (MTN 65-68, Orange 69, always 9 digits).
Empty fields are "not yet valid" without an error message so the submit
button can stay disabled quietly.
"""

import pytest

from xafpay.checkout.validation import (
    contact_field_errors,
    is_contact_valid,
    require_valid_contact,
    strip_non_digits,
    validate_email,
    validate_phone,
)
from xafpay.errors import ContactValidationError
from xafpay.integrations.contracts.interfaces import Carrier, ContactInfo

MTN_PREFIXES = {"65", "66", "67", "68"}
ORANGE_PREFIXES = {"69"}


@pytest.mark.parametrize("prefix", [f"{n:02d}" for n in range(100)])
def test_prefix_table_for_both_carriers(prefix):
    number = prefix + "1234567"

    mtn = validate_phone(number, Carrier.MTN)
    orange = validate_phone(number, Carrier.ORANGE)

    assert mtn.valid is (prefix in MTN_PREFIXES)
    assert orange.valid is (prefix in ORANGE_PREFIXES)
    if not mtn.valid:
        assert "65, 66, 67 or 68" in mtn.error
    if not orange.valid:
        assert "69" in orange.error


def test_orange_number_rejected_for_mtn_cites_allowed_prefixes():
    result = validate_phone("699999999", Carrier.MTN)
    assert result.valid is False
    assert result.error == "MTN numbers must start with 65, 66, 67 or 68"


def test_non_digits_are_stripped_before_checking():
    assert validate_phone("65 12-34 567", Carrier.MTN).valid
    assert validate_phone("(69) 123.45.67", Carrier.ORANGE).valid


@pytest.mark.parametrize("raw", ["65123456", "6512345678", "+237651234567"])
def test_wrong_length_is_reported(raw):
    result = validate_phone(raw, Carrier.MTN)
    assert result.valid is False
    assert result.error == "Phone number must be exactly 9 digits"


@pytest.mark.parametrize("raw", ["", "   ", None, "--"])
def test_empty_phone_is_not_yet_valid_without_error(raw):
    result = validate_phone(raw, Carrier.MTN)
    assert result.valid is False
    assert result.error is None


@pytest.mark.parametrize("raw", ["651234567", " 66-123-4567 ", "abc", "69 99", ""])
def test_phone_validation_is_pure_and_stripping_idempotent(raw):
    once = strip_non_digits(raw)
    assert strip_non_digits(once) == once
    for carrier in Carrier:
        assert validate_phone(raw, carrier) == validate_phone(raw, carrier)
        assert validate_phone(raw, carrier) == validate_phone(once, carrier)


def test_carrier_accepts_plain_string_value():
    assert validate_phone("691234567", "ORANGE").valid


@pytest.mark.parametrize("email", ["a@b.co", "payer.name+tag@shop.example.cm"])
def test_valid_emails(email):
    assert validate_email(email).valid


@pytest.mark.parametrize("email", ["payer", "payer@", "payer@shop", "pa yer@shop.cm", "@shop.cm"])
def test_invalid_emails_have_error(email):
    result = validate_email(email)
    assert result.valid is False
    assert result.error == "Email is not valid"


def test_empty_email_is_not_yet_valid_without_error():
    result = validate_email("")
    assert result.valid is False
    assert result.error is None


def test_optional_email_may_be_empty_but_not_malformed():
    assert validate_email("", required=False).valid
    assert not validate_email("nope", required=False).valid


def test_contact_field_errors_only_lists_fields_showing_an_error():
    contact = ContactInfo(phone="699999999", email="", carrier=Carrier.MTN)
    errors = contact_field_errors(contact)
    assert set(errors) == {"phone"}
    assert not is_contact_valid(contact)


def test_contact_valid_without_email_when_not_required():
    contact = ContactInfo(phone="651234567", email="", carrier=Carrier.MTN)
    assert not is_contact_valid(contact)
    assert is_contact_valid(contact, require_email=False)


def test_require_valid_contact_reports_required_fields():
    with pytest.raises(ContactValidationError) as exc_info:
        require_valid_contact(ContactInfo(phone="", email="bad", carrier=Carrier.ORANGE))

    errors = exc_info.value.field_errors
    assert errors["phone"] == "Phone is required"
    assert errors["email"] == "Email is not valid"


def test_require_valid_contact_passes_for_valid_contact():
    require_valid_contact(ContactInfo(phone="691234567", email="a@b.co", carrier=Carrier.ORANGE))
