"""Checkout entry parameters.

A checkout is opened with the merchant's order details in the query string
(``amount``, ``currency``, ``reference`` and ``return_url``) or, for hosted
sessions, with a ``session_id`` whose details the gateway supplies. Either
way the values go through the same rules here.

Amount and reference are never editable by the payer once parsed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qs, unquote, urlparse

from xafpay.errors import EntryError
from xafpay.integrations.contracts.interfaces import CheckoutSession

logger = logging.getLogger(__name__)

# First name is current, the rest are accepted for older merchant plugins.
REFERENCE_KEYS = ("reference", "order_id", "wc_order_id")

RawQuery = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class EntryParameters:
    amount: Decimal
    currency: str
    reference: str
    return_url: str

    @property
    def display_amount(self) -> str:
        if self.amount == self.amount.to_integral_value():
            return f"{int(self.amount):,} {self.currency}"
        return f"{self.amount:,.2f} {self.currency}"


def _as_str(v: Any) -> str:
    if isinstance(v, (list, tuple)):
        v = v[0] if v else None
    return "" if v is None else str(v)


def _strip(v: Any) -> str:
    return _as_str(v).strip()


def _to_mapping(raw_query: RawQuery) -> Tuple[Mapping[str, Any], bool]:
    """Return the parameters and whether parse_qs already percent-decoded them."""
    if isinstance(raw_query, Mapping):
        return raw_query, False
    text = (raw_query or "").strip()
    if "://" in text or (text.startswith("/") and "?" in text):
        text = urlparse(text).query
    return parse_qs(text.lstrip("?"), keep_blank_values=True), True


def _decode_return_url(value: str, *, already_decoded: bool) -> str:
    # mappings from other sources may still carry an encoded URL
    if not already_decoded and "://" not in value and "%" in value:
        return unquote(value)
    return value


def _parse_amount(raw: str) -> Decimal:
    if not raw:
        raise EntryError("amount is required", field="amount")
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise EntryError(f"amount must be a number, got {raw!r}", field="amount") from exc
    if not amount.is_finite() or amount <= 0:
        raise EntryError("amount must be greater than zero", field="amount")
    return amount


def parse_entry_parameters(
    raw_query: RawQuery,
    *,
    strict_mode: bool = True,
    default_currency: str = "XAF",
    default_return_url: str = "/",
) -> EntryParameters:
    """Parse checkout invocation parameters.

    Args:
        raw_query: query string, full URL or mapping of parameters.
        strict_mode: when False a missing ``return_url`` falls back to
            ``default_return_url``. Amount and reference are always required.

    Raises:
        EntryError: on a missing or invalid required parameter.
    """
    params, decoded = _to_mapping(raw_query)

    amount = _parse_amount(_strip(params.get("amount")))

    reference = ""
    for key in REFERENCE_KEYS:
        reference = _strip(params.get(key))
        if reference:
            break
    if not reference:
        raise EntryError("reference is required", field="reference")

    currency = _strip(params.get("currency")).upper() or default_currency

    return_url = _decode_return_url(_strip(params.get("return_url")), already_decoded=decoded)
    if not return_url:
        if strict_mode:
            raise EntryError("return_url is required", field="return_url")
        return_url = default_return_url

    return EntryParameters(amount=amount, currency=currency, reference=reference, return_url=return_url)


def try_parse_entry_parameters(
    raw_query: RawQuery, **kwargs: Any
) -> Tuple[Optional[EntryParameters], Optional[EntryError]]:
    """Non-raising form of parse_entry_parameters, for callers that switch views."""
    try:
        return parse_entry_parameters(raw_query, **kwargs), None
    except EntryError as exc:
        logger.info("Invalid checkout entry: %s", exc)
        return None, exc


def entry_from_session(session: CheckoutSession, **kwargs: Any) -> EntryParameters:
    """Apply the entry rules to details loaded from a server-side session."""
    params = {
        "amount": session.amount,
        "currency": session.currency or "",
        "reference": session.order_id,
        "return_url": session.return_url or "",
    }
    return parse_entry_parameters(params, **kwargs)
