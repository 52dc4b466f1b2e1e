"""Contact validation for the checkout form.

Everything here is a pure function of its inputs. The controller re-runs the
validators whenever a field changes instead of storing validity flags.

A result with ``valid=False`` and ``error=None`` means the field is empty:
submit stays disabled but no error is shown yet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from xafpay.errors import ContactValidationError
from xafpay.integrations.contracts.interfaces import Carrier, ContactInfo

PHONE_LENGTH = 9

CARRIER_PREFIXES: Dict[Carrier, tuple] = {
    Carrier.MTN: ("65", "66", "67", "68"),
    Carrier.ORANGE: ("69",),
}

CARRIER_LABELS: Dict[Carrier, str] = {
    Carrier.MTN: "MTN",
    Carrier.ORANGE: "Orange",
}

_NON_DIGITS_RE = re.compile(r"\D+")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def empty(cls) -> "ValidationResult":
        return cls(valid=False)

    @classmethod
    def invalid(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


def _strip(v: Any) -> str:
    return "" if v is None else str(v).strip()


def strip_non_digits(value: Any) -> str:
    return _NON_DIGITS_RE.sub("", _strip(value))


def _join_prefixes(prefixes: tuple) -> str:
    if len(prefixes) == 1:
        return prefixes[0]
    return f"{', '.join(prefixes[:-1])} or {prefixes[-1]}"


def validate_phone(raw: Any, carrier: Carrier) -> ValidationResult:
    digits = strip_non_digits(raw)
    if not digits:
        return ValidationResult.empty()
    if len(digits) != PHONE_LENGTH:
        return ValidationResult.invalid(f"Phone number must be exactly {PHONE_LENGTH} digits")

    carrier = Carrier(carrier)
    prefixes = CARRIER_PREFIXES[carrier]
    if not digits.startswith(prefixes):
        return ValidationResult.invalid(
            f"{CARRIER_LABELS[carrier]} numbers must start with {_join_prefixes(prefixes)}"
        )
    return ValidationResult.ok()


def validate_email(raw: Any, *, required: bool = True) -> ValidationResult:
    value = _strip(raw)
    if not value:
        return ValidationResult.empty() if required else ValidationResult.ok()
    if not _EMAIL_RE.match(value):
        return ValidationResult.invalid("Email is not valid")
    return ValidationResult.ok()


def validate_contact(contact: ContactInfo, *, require_email: bool = True) -> Dict[str, ValidationResult]:
    return {
        "phone": validate_phone(contact.phone, contact.carrier),
        "email": validate_email(contact.email, required=require_email),
    }


def contact_field_errors(contact: ContactInfo, *, require_email: bool = True) -> Dict[str, str]:
    """Field name -> message, for fields that currently show an error."""
    results = validate_contact(contact, require_email=require_email)
    return {name: r.error for name, r in results.items() if r.error}


def is_contact_valid(contact: ContactInfo, *, require_email: bool = True) -> bool:
    return all(r.valid for r in validate_contact(contact, require_email=require_email).values())


def require_valid_contact(contact: ContactInfo, *, require_email: bool = True) -> None:
    """Raise ContactValidationError unless every contact field is valid.

    Empty required fields are reported as "is required" here, since the payer
    has explicitly asked to proceed.
    """
    errors: Dict[str, str] = {}
    for name, result in validate_contact(contact, require_email=require_email).items():
        if result.valid:
            continue
        errors[name] = result.error or f"{name.capitalize()} is required"
    if errors:
        raise ContactValidationError(field_errors=errors, message="Contact details are not valid")
