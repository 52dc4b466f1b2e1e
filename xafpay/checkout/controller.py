"""
Checkout controller - one instance per opened checkout.

    INVALID_ENTRY                         (entry parameters rejected at mount)
    AWAITING_INPUT -> SUBMITTING -> POLLING -> SUCCEEDED -> (redirect to return_url)
                                |          -> FAILED | TIMED_OUT -> (retry allowed)
                                -> REDIRECTED                     (hosted payment page)

The controller is the only owner of the current payment attempt. Starting a
new attempt cancels the previous polling engine, and every engine callback is
tagged with the attempt number it belongs to so late callbacks are ignored.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from xafpay.checkout.entry import EntryParameters, RawQuery, entry_from_session, try_parse_entry_parameters
from xafpay.checkout.messages import BACKEND_STATUS, ERROR_MESSAGES, INFO_MESSAGES
from xafpay.checkout.polling import PollingEngine, PollReport, PollState, Sleep
from xafpay.checkout.validation import (
    ValidationResult,
    contact_field_errors,
    is_contact_valid,
    validate_email,
    validate_phone,
)
from xafpay.error_handler import ErrorHandler
from xafpay.errors import CheckoutError, EntryError, GatewayError, NetworkError
from xafpay.integrations.contracts.interfaces import (
    Carrier,
    ContactInfo,
    InitiateRequest,
    PaymentGateway,
    PaymentMode,
)
from xafpay.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)

Navigator = Callable[[str], None]


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Checkout polling task failed: %s", exc, exc_info=exc)


class CheckoutState(str, Enum):
    INVALID_ENTRY = "INVALID_ENTRY"
    AWAITING_INPUT = "AWAITING_INPUT"
    SUBMITTING = "SUBMITTING"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    REDIRECTED = "REDIRECTED"
    CLOSED = "CLOSED"


# States from which the payer may (re)submit.
SUBMITTABLE_STATES = frozenset({CheckoutState.AWAITING_INPUT, CheckoutState.FAILED, CheckoutState.TIMED_OUT})

# States in which contact fields can still be edited.
EDITABLE_STATES = SUBMITTABLE_STATES | {CheckoutState.SUBMITTING, CheckoutState.POLLING}


class OutcomeKind(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    NETWORK_ERROR = "NETWORK_ERROR"


@dataclass(frozen=True)
class CheckoutOutcome:
    kind: OutcomeKind
    transaction_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, transaction_id: Optional[str]) -> "CheckoutOutcome":
        return cls(OutcomeKind.SUCCESS, transaction_id=transaction_id)

    @classmethod
    def failed(cls, reason: str) -> "CheckoutOutcome":
        return cls(OutcomeKind.FAILED, reason=reason)

    @classmethod
    def timed_out(cls) -> "CheckoutOutcome":
        return cls(OutcomeKind.TIMED_OUT)

    @classmethod
    def network_error(cls, reason: Optional[str] = None) -> "CheckoutOutcome":
        return cls(OutcomeKind.NETWORK_ERROR, reason=reason)


class CheckoutController:
    def __init__(
        self,
        entry: Optional[EntryParameters],
        gateway: PaymentGateway,
        config: Optional[AppConfig] = None,
        *,
        entry_error: Optional[EntryError] = None,
        navigate: Optional[Navigator] = None,
        sleep: Sleep = asyncio.sleep,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.entry = entry
        self.entry_error = entry_error
        self.gateway = gateway
        self.config = config or AppConfig()
        self._navigate = navigate
        self._sleep = sleep
        self.error_handler = error_handler or ErrorHandler()

        self.contact = ContactInfo()
        self.outcome: Optional[CheckoutOutcome] = None
        self.backend_status = ""
        self.navigated_to: Optional[str] = None
        self.order_id: Optional[str] = None

        self._engine: Optional[PollingEngine] = None
        self._task: Optional[asyncio.Task] = None
        self._probe_task: Optional[asyncio.Task] = None
        self._attempt_seq = 0
        self._closed = False

        if entry is None:
            self.state = CheckoutState.INVALID_ENTRY
            self.status_message = ERROR_MESSAGES["invalid_link"]
        else:
            self.state = CheckoutState.AWAITING_INPUT
            self.status_message = ""

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def mount(
        cls,
        raw_query: RawQuery,
        gateway: PaymentGateway,
        config: Optional[AppConfig] = None,
        **kwargs: Any,
    ) -> "CheckoutController":
        """Open a checkout from invocation parameters. Never raises on bad input."""
        config = config or AppConfig()
        settings = config.checkout
        entry, error = try_parse_entry_parameters(
            raw_query,
            strict_mode=settings.strict_mode,
            default_currency=settings.default_currency,
            default_return_url=settings.default_return_url,
        )
        return cls(entry, gateway, config, entry_error=error, **kwargs)

    @classmethod
    async def mount_session(
        cls,
        session_id: str,
        gateway: PaymentGateway,
        config: Optional[AppConfig] = None,
        **kwargs: Any,
    ) -> "CheckoutController":
        """Open a checkout from a server-side session id."""
        config = config or AppConfig()
        settings = config.checkout
        if not (session_id or "").strip():
            controller = cls(None, gateway, config, entry_error=EntryError("session_id is required"), **kwargs)
            controller.status_message = ERROR_MESSAGES["session_not_found"]
            return controller

        try:
            session = await gateway.load_session(session_id)
            entry = entry_from_session(
                session,
                strict_mode=settings.strict_mode,
                default_currency=settings.default_currency,
                default_return_url=settings.default_return_url,
            )
        except EntryError as exc:
            logger.info("Session %s has invalid checkout details: %s", session_id, exc)
            return cls(None, gateway, config, entry_error=exc, **kwargs)
        except CheckoutError as exc:
            logger.warning("Could not load checkout session %s: %s", session_id, exc)
            controller = cls(None, gateway, config, entry_error=EntryError(str(exc)), **kwargs)
            controller.status_message = ERROR_MESSAGES["session_not_found"]
            return controller
        return cls(entry, gateway, config, **kwargs)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def require_email(self) -> bool:
        return self.config.checkout.require_email

    @property
    def phone_result(self) -> ValidationResult:
        return validate_phone(self.contact.phone, self.contact.carrier)

    @property
    def email_result(self) -> ValidationResult:
        return validate_email(self.contact.email, required=self.require_email)

    @property
    def field_errors(self) -> Dict[str, str]:
        return contact_field_errors(self.contact, require_email=self.require_email)

    @property
    def can_submit(self) -> bool:
        if self._closed or self.state not in SUBMITTABLE_STATES:
            return False
        return is_contact_valid(self.contact, require_email=self.require_email)

    @property
    def engine(self) -> Optional[PollingEngine]:
        return self._engine

    # ------------------------------------------------------------------
    # Payer actions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Run the advisory health probe. Does nothing for an invalid entry."""
        if self.entry is None or self._closed:
            return
        try:
            healthy = await self.gateway.probe_health()
        except Exception as exc:
            logger.warning("Health probe failed: %s", exc)
            self.backend_status = BACKEND_STATUS["offline"]
            return
        self.backend_status = BACKEND_STATUS["connected" if healthy else "issue"]

    def start_in_background(self) -> Optional[asyncio.Task]:
        """Schedule the health probe without waiting for it. The form is usable meanwhile."""
        if self.entry is None or self._closed:
            return None
        self._probe_task = asyncio.create_task(self.start())
        return self._probe_task

    def update_contact(
        self,
        *,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        carrier: Optional[Carrier] = None,
    ) -> Dict[str, str]:
        """Apply field edits and return the field errors for the new values."""
        if self.state not in EDITABLE_STATES:
            return self.field_errors
        if phone is not None:
            self.contact.phone = phone
        if email is not None:
            self.contact.email = email
        if carrier is not None:
            self.contact.carrier = Carrier(carrier)
        return self.field_errors

    async def submit(self) -> bool:
        """Submit the payment. Returns False (and does nothing) when submit is disabled."""
        if not self.can_submit:
            return False

        self._supersede_attempt()
        seq = self._attempt_seq
        self.state = CheckoutState.SUBMITTING
        self.status_message = INFO_MESSAGES["submitting"]
        self.outcome = None
        self.order_id = None

        request = InitiateRequest(
            amount=self.entry.amount,
            currency=self.entry.currency,
            reference=self.entry.reference,
            return_url=self.entry.return_url,
            phone="".join(ch for ch in self.contact.phone if ch.isdigit()),
            email=self.contact.email.strip(),
            carrier=self.contact.carrier,
        )

        try:
            response = await self.gateway.initiate(request)
            if not response.ok:
                raise GatewayError(response.error or ERROR_MESSAGES["payment_failed"], payload=response.raw)
            if not response.order_id:
                raise NetworkError("Gateway accepted the payment without an order id.")
            if response.mode is PaymentMode.REDIRECT and not response.redirect_url:
                raise NetworkError("Gateway chose redirect mode without a redirect_url.")
        except Exception as exc:
            if not self._is_current(seq):
                return True
            payload = self.error_handler.handle_exception(exc, context={"reference": self.entry.reference})
            self.state = CheckoutState.AWAITING_INPUT
            self.status_message = payload["message"]
            if payload["error_type"] == "gateway":
                self.outcome = CheckoutOutcome.failed(payload["message"])
            else:
                self.outcome = CheckoutOutcome.network_error(payload["metadata"]["error"])
            return True

        if not self._is_current(seq):
            return True

        self.order_id = response.order_id
        if response.mode is PaymentMode.REDIRECT:
            self.state = CheckoutState.REDIRECTED
            self.status_message = INFO_MESSAGES["redirecting_to_provider"]
            self._go(response.redirect_url)
            return True

        engine = PollingEngine(
            self.gateway,
            max_attempts=self.config.polling.max_attempts,
            interval_seconds=self.config.polling.interval_seconds,
            on_report=lambda report: self._handle_report(seq, report),
            sleep=self._sleep,
        )
        engine.start(response.order_id)
        self._engine = engine
        self.state = CheckoutState.POLLING
        self.status_message = INFO_MESSAGES["approve_on_phone"]
        self._task = asyncio.create_task(self._drive(seq, engine))
        self._task.add_done_callback(_log_task_failure)
        return True

    async def wait(self) -> Optional[CheckoutOutcome]:
        """Wait for the current polling task (and any success redirect) to finish."""
        if self._task is not None:
            await self._task
        return self.outcome

    def close(self) -> None:
        """Discard this checkout: stop polling and suppress any pending redirect."""
        if self._closed:
            return
        self._closed = True
        self._supersede_attempt()
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()
        self.state = CheckoutState.CLOSED
        logger.info("Checkout closed (reference=%s)", self.entry.reference if self.entry else None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_current(self, seq: int) -> bool:
        return not self._closed and seq == self._attempt_seq

    def _supersede_attempt(self) -> None:
        if self._engine is not None:
            self._engine.cancel()
            self._engine = None
        self._attempt_seq += 1

    def _handle_report(self, seq: int, report: PollReport) -> None:
        if not self._is_current(seq):
            return
        if report.state is PollState.SUCCEEDED:
            self.state = CheckoutState.SUCCEEDED
            self.outcome = CheckoutOutcome.success(report.transaction_id)
            self.status_message = INFO_MESSAGES["success"]
        elif report.state is PollState.FAILED:
            self.state = CheckoutState.FAILED
            self.outcome = CheckoutOutcome.failed(report.status or ERROR_MESSAGES["payment_failed"])
            self.status_message = ERROR_MESSAGES["payment_failed"]
        elif report.state is PollState.TIMED_OUT:
            self.state = CheckoutState.TIMED_OUT
            self.outcome = CheckoutOutcome.timed_out()
            self.status_message = INFO_MESSAGES["timed_out"]

    async def _drive(self, seq: int, engine: PollingEngine) -> None:
        report = await engine.run()
        if report is None or report.state is not PollState.SUCCEEDED:
            return
        await self._sleep(self.config.checkout.redirect_delay_seconds)
        if self._is_current(seq):
            self._go(self.entry.return_url)

    def _go(self, url: str) -> None:
        logger.info("Navigating to %s", url)
        self.navigated_to = url
        if self._navigate is not None:
            self._navigate(url)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        entry = None
        if self.entry is not None:
            entry = {
                "amount": str(self.entry.amount),
                "currency": self.entry.currency,
                "reference": self.entry.reference,
                "return_url": self.entry.return_url,
                "display_amount": self.entry.display_amount,
            }
        outcome = None
        if self.outcome is not None:
            outcome = {
                "kind": self.outcome.kind.value,
                "transaction_id": self.outcome.transaction_id,
                "reason": self.outcome.reason,
            }
        return {
            "state": self.state.value,
            "status_message": self.status_message,
            "backend_status": self.backend_status,
            "entry": entry,
            "contact": {"phone": self.contact.phone, "email": self.contact.email, "carrier": self.contact.carrier.value},
            "field_errors": self.field_errors,
            "can_submit": self.can_submit,
            "order_id": self.order_id,
            "outcome": outcome,
            "navigated_to": self.navigated_to,
        }
