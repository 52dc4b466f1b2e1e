from decimal import Decimal
from typing import List, Optional, Union

from .interfaces import InitiateRequest, StatusBucket, StatusResponse

"""
Payment contract helpers.

Status normalization and request serialization shared by:
- clients/mocks/gateway.py (fake responses for development/testing)
- clients/real_http/gateway.py (real API calls)

Gateways report free-form status strings; everything downstream works with
the three StatusBucket values instead.
"""

# ---------------------------------------------------------------------------
# Status buckets
# ---------------------------------------------------------------------------

SUCCESS_STATUSES = frozenset({"SUCCESS", "SUCCESSFUL", "COMPLETED", "PAID"})
FAILURE_STATUSES = frozenset({"FAILED", "CANCELED", "CANCELLED", "EXPIRED"})


def classify_status(status: Optional[str]) -> StatusBucket:
    """Map a gateway status string onto a bucket, case-insensitively."""
    normalized = (status or "").strip().upper()
    if normalized in SUCCESS_STATUSES:
        return StatusBucket.SUCCESS
    if normalized in FAILURE_STATUSES:
        return StatusBucket.FAILURE
    return StatusBucket.PENDING


def classify_response(response: StatusResponse) -> StatusBucket:
    """``ok: false`` is transient, so it is always pending."""
    if not response.ok:
        return StatusBucket.PENDING
    return classify_status(response.status)


def is_terminal_status(status: Optional[str]) -> bool:
    """Return True if the status can no longer change."""
    return classify_status(status) is not StatusBucket.PENDING


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def amount_to_json(amount: Decimal) -> Union[int, float]:
    """Whole amounts go out as integers (XAF has no minor unit)."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def build_initiate_payload(request: InitiateRequest) -> dict:
    return {
        "amount": amount_to_json(request.amount),
        "currency": request.currency,
        "phone": request.phone,
        "email": request.email,
        "carrier": request.carrier.value,
        "reference": request.reference,
        # older backends only read the WooCommerce field name
        "wc_order_id": request.reference,
        "return_url": request.return_url,
    }


def validate_initiate_request(request: InitiateRequest) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the request is valid.
    """
    errors: List[str] = []

    if not request.reference:
        errors.append("reference is required")
    if not request.phone:
        errors.append("phone is required")
    if request.amount <= 0:
        errors.append("amount must be greater than zero")
    if not request.currency:
        errors.append("currency is required")
    if not request.return_url:
        errors.append("return_url is required")

    return errors
