from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from xafpay.errors import NetworkError
from xafpay.integrations.contracts.interfaces import (
    CheckoutSession,
    InitiateResponse,
    PaymentMode,
    SessionSummary,
    StatusResponse,
)


class IntegrationResponseError(NetworkError):
    """The gateway answered, but not with the payload we expect."""

    def __init__(self, message: str, *, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.payload = payload if payload is not None else {}


class InitiateResponseModel(BaseModel):
    ok: bool
    order_id: Optional[str] = None
    mode: PaymentMode = PaymentMode.DIRECT
    redirect_url: Optional[str] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class StatusResponseModel(BaseModel):
    ok: bool
    status: str = ""
    transaction_id: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class SessionResponseModel(BaseModel):
    session_id: str
    order_id: str
    amount: str
    currency: Optional[str] = None
    return_url: Optional[str] = None


class SessionSummaryModel(BaseModel):
    session_id: str
    carrier_code: str = ""
    amount: str = ""
    currency: str = ""
    status: str = ""


def normalize_initiate_response(raw: Any) -> InitiateResponse:
    data = _require_mapping(raw, "initiate")
    ok = _coerce_bool(_first_non_empty(data, "ok"))

    if not ok:
        error = str(_first_non_empty(data, "error", "message", default="Payment request was rejected."))
        return InitiateResponse(ok=False, error=error, raw=data)

    order_id = str(_first_non_empty(data, "order_id", "xf_order_id", "reference_id"))
    mode = _map_payment_mode(data.get("mode"))
    redirect_url = data.get("redirect_url") or None
    if mode is PaymentMode.REDIRECT and not redirect_url:
        raise IntegrationResponseError("Redirect mode response is missing redirect_url.", payload=data)

    model = _build_model(
        InitiateResponseModel,
        {"ok": True, "order_id": order_id, "mode": mode, "redirect_url": redirect_url, "raw": data},
        data,
    )
    return InitiateResponse(
        ok=model.ok,
        order_id=model.order_id,
        mode=model.mode,
        redirect_url=model.redirect_url,
        raw=model.raw,
    )


def normalize_status_response(raw: Any) -> StatusResponse:
    data = _require_mapping(raw, "status")
    ok = _coerce_bool(data.get("ok", False))
    status = str(_first_non_empty(data, "status", "payment_status", default="")).strip()
    transaction_id = _first_non_empty(data, "transaction_id", "transactionId", "financial_transaction_id", default="") or None

    model = _build_model(
        StatusResponseModel,
        {
            "ok": ok,
            "status": status,
            "transaction_id": str(transaction_id) if transaction_id is not None else None,
            "raw": data,
        },
        data,
    )
    return StatusResponse(ok=model.ok, status=model.status, transaction_id=model.transaction_id, raw=model.raw)


def normalize_session_response(raw: Any, *, session_id: str) -> CheckoutSession:
    data = _require_mapping(raw, "session")
    if not _coerce_bool(data.get("ok", False)):
        message = str(_first_non_empty(data, "error", default="Unable to load checkout details."))
        raise IntegrationResponseError(message, payload=data)

    details = _require_mapping(data.get("data"), "session data")
    model = _build_model(
        SessionResponseModel,
        {
            "session_id": session_id,
            "order_id": str(_first_non_empty(details, "order_id", "reference")),
            "amount": str(_first_non_empty(details, "amount")),
            "currency": details.get("currency") or None,
            "return_url": details.get("return_url") or None,
        },
        data,
    )
    return CheckoutSession(**model.model_dump())


def normalize_session_list(raw: Any) -> List[SessionSummary]:
    data = _require_mapping(raw, "sessions")
    if str(data.get("status", "")).lower() != "ok":
        raise IntegrationResponseError("Session listing was not ok.", payload=data)

    rows = data.get("data")
    if not isinstance(rows, list):
        raise IntegrationResponseError("Session listing has no data list.", payload=data)

    out: List[SessionSummary] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        model = _build_model(
            SessionSummaryModel,
            {
                "session_id": str(_first_non_empty(row, "id", "session_id")),
                "carrier_code": str(row.get("carrier_code") or ""),
                "amount": str(row.get("amount") or ""),
                "currency": str(row.get("currency") or ""),
                "status": str(row.get("status") or ""),
            },
            data,
        )
        out.append(SessionSummary(**model.model_dump()))
    return out


def _require_mapping(raw: Any, label: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise IntegrationResponseError(f"Expected a JSON object for {label} response.", payload=raw)
    return raw


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("true", "1", "yes", "ok")


def _map_payment_mode(raw_mode: Any) -> PaymentMode:
    value = str(raw_mode or "").strip().upper()
    if not value:
        return PaymentMode.DIRECT
    mapping = {
        "DIRECT": PaymentMode.DIRECT,
        "PUSH": PaymentMode.DIRECT,
        "REDIRECT": PaymentMode.REDIRECT,
    }
    if value not in mapping:
        raise IntegrationResponseError(f"Unsupported payment mode '{value}'.")
    return mapping[value]


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
