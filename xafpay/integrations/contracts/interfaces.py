from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Carrier(str, Enum):
    MTN = "MTN"
    ORANGE = "ORANGE"


class PaymentMode(str, Enum):
    DIRECT = "DIRECT"          # payer's handset is prompted, status must be polled
    REDIRECT = "REDIRECT"      # payer is sent to an external payment page


class StatusBucket(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PENDING = "PENDING"


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class ContactInfo:
    phone: str = ""
    email: str = ""
    carrier: Carrier = Carrier.MTN


@dataclass(frozen=True)
class InitiateRequest:
    amount: Decimal
    currency: str
    reference: str
    return_url: str
    phone: str
    email: str
    carrier: Carrier


@dataclass(frozen=True)
class InitiateResponse:
    ok: bool
    order_id: Optional[str] = None
    mode: PaymentMode = PaymentMode.DIRECT
    redirect_url: Optional[str] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StatusResponse:
    ok: bool
    status: str = ""
    transaction_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutSession:
    """Checkout details stored server-side and looked up by session id."""
    session_id: str
    order_id: str
    amount: str
    currency: Optional[str] = None
    return_url: Optional[str] = None


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    carrier_code: str
    amount: str
    currency: str
    status: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Abstract gateway interface
# ---------------------------------------------------------------------------

class PaymentGateway(ABC):
    """Every payment gateway client must implement this interface.

    None of these operations retry on their own: status retries belong to
    the polling engine and submission retries to the payer.
    """

    @abstractmethod
    async def initiate(self, request: InitiateRequest) -> InitiateResponse:
        """Start a mobile money collection for the given contact."""

    @abstractmethod
    async def query_status(self, order_id: str) -> StatusResponse:
        """Look up the current status of a previously initiated payment."""

    @abstractmethod
    async def probe_health(self) -> bool:
        """Return True when the backend reports itself healthy."""

    @abstractmethod
    async def load_session(self, session_id: str) -> CheckoutSession:
        """Fetch checkout details for a server-side session."""

    @abstractmethod
    async def list_sessions(self) -> List[SessionSummary]:
        """Return recent checkout sessions."""
