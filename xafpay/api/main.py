"""
FastAPI application - JSON surface over the checkout controller

The page (or any other client) opens a checkout with the link's query
parameters, pushes contact edits, submits, and reads the state back.
Navigation targets are returned in ``navigated_to``; the client performs the
actual redirect.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from xafpay import __version__
from xafpay.checkout.controller import CheckoutController, CheckoutState
from xafpay.checkout.validation import require_valid_contact
from xafpay.errors import CheckoutError, ContactValidationError
from xafpay.integrations.clients import select_payment_gateway
from xafpay.integrations.contracts.interfaces import Carrier, PaymentGateway
from xafpay.utils.config_loader import AppConfig, apply_env_overrides, load_checkout_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="XafPay Checkout API",
    description="Mobile money checkout: contact validation, payment submission and status polling",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

app_config: AppConfig = apply_env_overrides(load_checkout_config())
payment_gateway: PaymentGateway = select_payment_gateway(app_config.gateway)


class CheckoutRegistry:
    """In-memory checkouts for this process. Lost on restart.

    Checkouts untouched for ``idle_ttl_seconds`` are closed and dropped when a
    new one is added; past ``max_size`` the least recently used go first.
    """

    def __init__(self, max_size: int = 1000, idle_ttl_seconds: float = 1800.0, clock=time.monotonic):
        self.max_size = max_size
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        self._checkouts: "OrderedDict[str, CheckoutController]" = OrderedDict()
        self._touched: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._checkouts)

    def add(self, controller: CheckoutController) -> str:
        self._evict()
        checkout_id = uuid.uuid4().hex
        self._checkouts[checkout_id] = controller
        self._touched[checkout_id] = self._clock()
        return checkout_id

    def get(self, checkout_id: str) -> Optional[CheckoutController]:
        controller = self._checkouts.get(checkout_id)
        if controller is not None:
            self._checkouts.move_to_end(checkout_id)
            self._touched[checkout_id] = self._clock()
        return controller

    def remove(self, checkout_id: str) -> Optional[CheckoutController]:
        self._touched.pop(checkout_id, None)
        return self._checkouts.pop(checkout_id, None)

    def close_all(self) -> None:
        for controller in self._checkouts.values():
            controller.close()
        self._checkouts.clear()
        self._touched.clear()

    def _evict(self) -> None:
        cutoff = self._clock() - self.idle_ttl_seconds
        expired = [cid for cid, touched in self._touched.items() if touched <= cutoff]
        while len(self._checkouts) - len(expired) >= self.max_size:
            oldest = next(cid for cid in self._checkouts if cid not in expired)
            expired.append(oldest)
        for checkout_id in expired:
            controller = self.remove(checkout_id)
            if controller is not None:
                controller.close()
                logger.info("Evicted checkout %s state=%s", checkout_id, controller.state.value)


checkout_registry = CheckoutRegistry(
    max_size=app_config.checkout.max_open_checkouts,
    idle_ttl_seconds=app_config.checkout.idle_ttl_seconds,
)


def get_config() -> AppConfig:
    return app_config


def get_gateway() -> PaymentGateway:
    return payment_gateway


def get_registry() -> CheckoutRegistry:
    return checkout_registry


def _require_checkout(checkout_id: str, registry: CheckoutRegistry) -> CheckoutController:
    controller = registry.get(checkout_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Checkout not found")
    return controller


def _view(checkout_id: str, controller: CheckoutController) -> Dict:
    return {"checkout_id": checkout_id, **controller.snapshot()}


# ============================================================================
# REQUEST MODELS
# ============================================================================


class ContactUpdate(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    carrier: Optional[Carrier] = None


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/health", tags=["Health"])
async def health_check(gateway: PaymentGateway = Depends(get_gateway)):
    """Service health plus the advisory backend probe."""
    try:
        backend_ok = await gateway.probe_health()
    except CheckoutError as e:
        logger.warning("Backend health probe failed: %s", e)
        backend_ok = False
    return {
        "status": "healthy",
        "backend": "connected" if backend_ok else "unavailable",
        "timestamp": datetime.now().isoformat(),
    }


@app.post("/checkout", tags=["Checkout"])
async def open_checkout(
    request: Request,
    config: AppConfig = Depends(get_config),
    gateway: PaymentGateway = Depends(get_gateway),
    registry: CheckoutRegistry = Depends(get_registry),
):
    """
    Open a checkout from the link's query parameters
    (amount, currency, reference/order_id, return_url) or from ?session_id=.

    An invalid link still opens a checkout, in the INVALID_ENTRY state.
    """
    session_id = request.query_params.get("session_id")
    if session_id is not None:
        controller = await CheckoutController.mount_session(session_id, gateway, config)
    else:
        # raw query string: parse_qs decodes exactly once
        controller = CheckoutController.mount(request.url.query, gateway, config)

    controller.start_in_background()
    checkout_id = registry.add(controller)
    logger.info("Opened checkout %s state=%s", checkout_id, controller.state.value)
    return _view(checkout_id, controller)


@app.get("/checkout/{checkout_id}", tags=["Checkout"])
async def get_checkout(checkout_id: str, registry: CheckoutRegistry = Depends(get_registry)):
    return _view(checkout_id, _require_checkout(checkout_id, registry))


@app.post("/checkout/{checkout_id}/contact", tags=["Checkout"])
async def update_contact(
    checkout_id: str,
    update: ContactUpdate,
    registry: CheckoutRegistry = Depends(get_registry),
):
    controller = _require_checkout(checkout_id, registry)
    controller.update_contact(phone=update.phone, email=update.email, carrier=update.carrier)
    return _view(checkout_id, controller)


@app.post("/checkout/{checkout_id}/pay", tags=["Checkout"])
async def pay(checkout_id: str, registry: CheckoutRegistry = Depends(get_registry)):
    controller = _require_checkout(checkout_id, registry)
    if controller.state is CheckoutState.INVALID_ENTRY:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=controller.status_message)

    try:
        require_valid_contact(controller.contact, require_email=controller.require_email)
    except ContactValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "validation_error",
                "message": e.message,
                "field_errors": e.field_errors,
            },
        )

    submitted = await controller.submit()
    if not submitted:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Checkout cannot be submitted in state {controller.state.value}",
        )
    return _view(checkout_id, controller)


@app.post("/checkout/{checkout_id}/close", tags=["Checkout"])
async def close_checkout(checkout_id: str, registry: CheckoutRegistry = Depends(get_registry)):
    controller = _require_checkout(checkout_id, registry)
    controller.close()
    registry.remove(checkout_id)
    return _view(checkout_id, controller)


@app.get("/sessions", tags=["Sessions"])
async def list_sessions(gateway: PaymentGateway = Depends(get_gateway)):
    """Recent checkout sessions known to the backend."""
    try:
        sessions = await gateway.list_sessions()
    except CheckoutError as e:
        logger.warning("Failed to load sessions: %s", e)
        sessions = []
    return {
        "sessions": [
            {
                "id": s.session_id,
                "carrier_code": s.carrier_code,
                "amount": s.amount,
                "currency": s.currency,
                "status": s.status,
            }
            for s in sessions
        ]
    }


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("Starting XafPay Checkout API (gateway=%s)", type(payment_gateway).__name__)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down XafPay Checkout API...")
    checkout_registry.close_all()
