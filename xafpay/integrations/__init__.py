"""
Integrations layer.
This package contains all code used to communicate with the XafPay backend:
- payment initiation (direct push or redirect)
- payment status lookup
- health probe and checkout session lookup

Key rule:
- Checkout code MUST NOT call the backend directly.
- It talks to a PaymentGateway implementation (under xafpay/integrations/clients).
- We use the MOCK gateway during development and the REAL_HTTP gateway when a
  backend base URL is configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place
  (select_payment_gateway in xafpay/integrations/clients/__init__.py).
"""

from .contracts.interfaces import (
    Carrier,
    CheckoutSession,
    ContactInfo,
    InitiateRequest,
    InitiateResponse,
    PaymentGateway,
    PaymentMode,
    SessionSummary,
    StatusBucket,
    StatusResponse,
)
from .contracts.payments import (
    classify_response,
    classify_status,
    is_terminal_status,
    validate_initiate_request,
)

__all__ = [
    # interfaces
    "Carrier", "CheckoutSession", "ContactInfo", "InitiateRequest",
    "InitiateResponse", "PaymentGateway", "PaymentMode", "SessionSummary",
    "StatusBucket", "StatusResponse",
    # payments
    "classify_response", "classify_status", "is_terminal_status",
    "validate_initiate_request",
]
