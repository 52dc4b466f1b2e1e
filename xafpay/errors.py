"""Checkout error taxonomy.

- EntryError: invocation parameters missing or invalid. Fatal, handled before
  the checkout form is shown by switching to the invalid-link view.
- ContactValidationError: per-field contact problems. Recoverable.
- GatewayError: the gateway answered ``ok: false`` with a message that is
  shown to the payer verbatim.
- NetworkError: transport failure, HTTP error status or a body that is not
  the expected JSON. Shown as a generic message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    """Base class for every error raised by the checkout client."""


class EntryError(CheckoutError):
    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


@dataclass
class ContactValidationError(CheckoutError):
    """Raised when contact details are submitted while invalid.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
        message: optional top-level message.
    """

    field_errors: Dict[str, str] = field(default_factory=dict)
    message: str = "Validation failed"

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class GatewayError(CheckoutError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class NetworkError(CheckoutError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
