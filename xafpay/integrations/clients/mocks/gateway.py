"""
XafPay gateway: MOCK client.

⚠️  This is a mock implementation for development and testing.
    It never touches the network. Payments settle after a configurable number
    of status queries, succeeding with a configurable probability.
"""

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from xafpay.integrations.contracts.interfaces import (
    CheckoutSession,
    InitiateRequest,
    InitiateResponse,
    PaymentGateway,
    PaymentMode,
    SessionSummary,
    StatusResponse,
)
from xafpay.integrations.contracts.payments import validate_initiate_request
from xafpay.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

_MOCK_SESSIONS: List[CheckoutSession] = [
    CheckoutSession(
        session_id="sess_demo_001",
        order_id="WC-1001",
        amount="2000",
        currency="XAF",
        return_url="https://shop.example.cm/checkout/order-received/1001",
    ),
    CheckoutSession(
        session_id="sess_demo_002",
        order_id="WC-1002",
        amount="15500",
        currency="XAF",
        return_url="https://shop.example.cm/checkout/order-received/1002",
    ),
]


@dataclass
class _MockPayment:
    request: InitiateRequest
    will_succeed: bool
    queries: int = 0
    transaction_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Mock client
# ---------------------------------------------------------------------------

class MockPaymentGateway(PaymentGateway):
    """
    Mock XafPay gateway.

    Parameters
    ----------
    payment_success_rate : float
        Probability (0–1) that a payment will succeed. Default 0.95.
    polls_until_settled : int
        Status queries answered PENDING before the final status. Default 2.
    mode : PaymentMode
        Mode returned by initiate. REDIRECT sends the payer to a fake hosted page.
    healthy : bool
        Value returned by probe_health.
    seed : int, optional
        Seed for the success draw, for reproducible runs.
    """

    def __init__(
        self,
        payment_success_rate: float = 0.95,
        polls_until_settled: int = 2,
        mode: PaymentMode = PaymentMode.DIRECT,
        healthy: bool = True,
        seed: Optional[int] = None,
    ):
        self._success_rate = payment_success_rate
        self._polls_until_settled = polls_until_settled
        self._mode = mode
        self._healthy = healthy
        self._rng = random.Random(seed)

        # In-memory stores (reset on restart)
        self._payments: Dict[str, _MockPayment] = {}
        self._sessions: Dict[str, CheckoutSession] = {s.session_id: s for s in _MOCK_SESSIONS}

        logger.info("[XAFPAY MOCK] Gateway initialised (success_rate=%.0f%%, mode=%s)",
                    payment_success_rate * 100, mode.value)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _new_order_id(self) -> str:
        return f"XF-{uuid.uuid4().hex[:12].upper()}"

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def initiate(self, request: InitiateRequest) -> InitiateResponse:
        errors = validate_initiate_request(request)
        if errors:
            logger.info("[XAFPAY MOCK] Rejecting payment ref=%s: %s", request.reference, errors)
            return InitiateResponse(ok=False, error="; ".join(errors))

        order_id = self._new_order_id()
        self._payments[order_id] = _MockPayment(
            request=request,
            will_succeed=self._rng.random() < self._success_rate,
        )
        logger.info("[XAFPAY MOCK] Payment %s created ref=%s amount=%s %s via %s",
                    order_id, request.reference, request.amount, request.currency, request.carrier.value)

        if self._mode is PaymentMode.REDIRECT:
            return InitiateResponse(
                ok=True,
                order_id=order_id,
                mode=PaymentMode.REDIRECT,
                redirect_url=f"https://pay.xafpay.mock/hosted/{order_id}",
            )
        return InitiateResponse(ok=True, order_id=order_id, mode=PaymentMode.DIRECT)

    async def query_status(self, order_id: str) -> StatusResponse:
        payment = self._payments.get(order_id)
        if payment is None:
            # Unknown order, answer not-ok so callers keep polling
            return StatusResponse(ok=False, status="", raw={"error": "order not found"})

        payment.queries += 1
        if payment.queries <= self._polls_until_settled:
            return StatusResponse(ok=True, status="PENDING")

        if payment.will_succeed:
            if payment.transaction_id is None:
                payment.transaction_id = f"TX-{uuid.uuid4().hex[:10].upper()}"
            logger.info("[XAFPAY MOCK] Payment %s → SUCCESSFUL", order_id)
            return StatusResponse(ok=True, status="SUCCESSFUL", transaction_id=payment.transaction_id)

        logger.info("[XAFPAY MOCK] Payment %s → FAILED", order_id)
        return StatusResponse(ok=True, status="FAILED")

    async def probe_health(self) -> bool:
        return self._healthy

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def register_session(self, session: CheckoutSession) -> CheckoutSession:
        self._sessions[session.session_id] = session
        return session

    async def load_session(self, session_id: str) -> CheckoutSession:
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning("[XAFPAY MOCK] Session not found id=%s", session_id)
            raise IntegrationResponseError("Checkout session not found.", payload={"session_id": session_id})
        return session

    async def list_sessions(self) -> List[SessionSummary]:
        out = []
        for session in self._sessions.values():
            out.append(
                SessionSummary(
                    session_id=session.session_id,
                    carrier_code="MTN",
                    amount=session.amount,
                    currency=session.currency or "XAF",
                    status="pending",
                    created_at=datetime.now(timezone.utc),
                )
            )
        return out
