"""
Real XafPay HTTP gateway client.

Used when a backend base URL is configured. Every call opens a short-lived
httpx.AsyncClient; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from xafpay.errors import NetworkError
from xafpay.integrations.contracts.interfaces import (
    CheckoutSession,
    InitiateRequest,
    InitiateResponse,
    PaymentGateway,
    SessionSummary,
    StatusResponse,
)
from xafpay.integrations.contracts.payments import build_initiate_payload
from xafpay.integrations.policy.response_wrappers import (
    IntegrationResponseError,
    normalize_initiate_response,
    normalize_session_list,
    normalize_session_response,
    normalize_status_response,
)
from xafpay.utils.config_loader import GatewayConfig

logger = logging.getLogger(__name__)


class HttpPaymentGateway(PaymentGateway):
    def __init__(
        self,
        config: GatewayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not config.base_url:
            raise ValueError("XafPay gateway base_url is not configured.")
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, url, params=params, json=payload, headers=self._headers())
        except httpx.RequestError as e:
            logger.error("Request error connecting to XafPay backend %s: %s", url, e)
            raise NetworkError(f"Could not reach payment backend: {e}", cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Non-JSON response from %s (status=%s)", url, response.status_code)
            raise IntegrationResponseError(
                f"Payment backend returned a non-JSON body (HTTP {response.status_code}).",
                payload={"body": response.text[:500]},
            ) from e

        # Error statuses are tolerated only when the body still speaks the {ok, error} protocol.
        if response.is_error and not (isinstance(data, dict) and "ok" in data):
            logger.error("HTTP error from XafPay backend: %s %s", response.status_code, url)
            raise NetworkError(f"Payment backend returned HTTP {response.status_code}.")

        logger.debug("XafPay %s %s -> %s", method, path, response.status_code)
        return data

    async def initiate(self, request: InitiateRequest) -> InitiateResponse:
        logger.info(
            "Initiating %s payment reference=%s amount=%s %s",
            request.carrier.value, request.reference, request.amount, request.currency,
        )
        data = await self._request("POST", self.config.initiate_path, payload=build_initiate_payload(request))
        response = normalize_initiate_response(data)
        if response.ok:
            logger.info("Payment accepted order_id=%s mode=%s", response.order_id, response.mode.value)
        else:
            logger.warning("Payment rejected reference=%s: %s", request.reference, response.error)
        return response

    async def query_status(self, order_id: str) -> StatusResponse:
        data = await self._request("GET", self.config.status_path, params={"order_id": order_id})
        return normalize_status_response(data)

    async def probe_health(self) -> bool:
        url = f"{self.base_url}{self.config.health_path}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.RequestError as e:
            logger.warning("Health probe failed for %s: %s", url, e)
            raise NetworkError(f"Could not reach payment backend: {e}", cause=e) from e
        return response.is_success

    async def load_session(self, session_id: str) -> CheckoutSession:
        data = await self._request("GET", self.config.session_path, params={"session_id": session_id})
        return normalize_session_response(data, session_id=session_id)

    async def list_sessions(self) -> List[SessionSummary]:
        data = await self._request("GET", self.config.sessions_path)
        return normalize_session_list(data)
