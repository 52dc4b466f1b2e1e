"""Payment status polling.

One PollingEngine tracks one PaymentAttempt:

    IDLE -> POLLING -> SUCCEEDED | FAILED | TIMED_OUT

plus CANCELLED when the attempt is superseded or the checkout is closed.
Cancellation is a liveness flag checked at the top of every tick and again
after each status query returns, so a response that lands after cancel()
is dropped. Terminal states are reported to ``on_report`` exactly once;
cancellation is never reported.

Ticks are serialized by run(): the next sleep starts only once the previous
query has resolved.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from xafpay.integrations.contracts.interfaces import PaymentGateway, StatusBucket, StatusResponse
from xafpay.integrations.contracts.payments import classify_response

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 15
DEFAULT_INTERVAL_SECONDS = 3.0


class PollState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = frozenset({PollState.SUCCEEDED, PollState.FAILED, PollState.TIMED_OUT})


@dataclass
class PaymentAttempt:
    gateway_order_id: str
    status: PollState = PollState.POLLING
    attempts_made: int = 0              # status queries issued so far
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_status: str = ""
    transaction_id: Optional[str] = None


@dataclass(frozen=True)
class PollReport:
    state: PollState
    order_id: str
    attempts: int
    status: str = ""
    transaction_id: Optional[str] = None


ReportCallback = Callable[[PollReport], None]
Sleep = Callable[[float], Awaitable[None]]


class PollingEngine:
    def __init__(
        self,
        gateway: PaymentGateway,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        on_report: Optional[ReportCallback] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.gateway = gateway
        self.max_attempts = max_attempts
        self.interval_seconds = interval_seconds
        self._on_report = on_report
        self._sleep = sleep

        self._attempt: Optional[PaymentAttempt] = None
        self._state = PollState.IDLE
        self._active = False
        self._report: Optional[PollReport] = None

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def attempt(self) -> Optional[PaymentAttempt]:
        return self._attempt

    @property
    def active(self) -> bool:
        return self._active

    @property
    def report(self) -> Optional[PollReport]:
        return self._report

    def start(self, order_id: str) -> PaymentAttempt:
        if self._state is not PollState.IDLE:
            raise RuntimeError("PollingEngine tracks a single attempt; create a new engine")
        if not order_id:
            raise ValueError("order_id is required to start polling")
        self._attempt = PaymentAttempt(gateway_order_id=order_id)
        self._state = PollState.POLLING
        self._active = True
        logger.info("Polling started for order %s (max_attempts=%s)", order_id, self.max_attempts)
        return self._attempt

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._state = PollState.CANCELLED
        if self._attempt is not None:
            self._attempt.status = PollState.CANCELLED
            logger.info("Polling cancelled for order %s after %s attempts",
                        self._attempt.gateway_order_id, self._attempt.attempts_made)

    async def tick(self) -> PollState:
        """Run one polling step and return the engine state afterwards."""
        if not self._active or self._attempt is None:
            return self._state

        attempt = self._attempt
        if attempt.attempts_made >= self.max_attempts:
            self._finish(PollState.TIMED_OUT)
            return self._state

        attempt.attempts_made += 1
        response: Optional[StatusResponse] = None
        try:
            response = await self.gateway.query_status(attempt.gateway_order_id)
        except Exception as exc:
            # no information this tick; keep polling
            logger.warning("Status query %s for order %s failed: %s",
                           attempt.attempts_made, attempt.gateway_order_id, exc)

        if not self._active:
            logger.debug("Dropping status response for superseded order %s", attempt.gateway_order_id)
            return self._state

        if response is None:
            return self._state

        attempt.last_status = response.status
        bucket = classify_response(response)
        if bucket is StatusBucket.SUCCESS:
            attempt.transaction_id = response.transaction_id
            self._finish(PollState.SUCCEEDED)
        elif bucket is StatusBucket.FAILURE:
            self._finish(PollState.FAILED)
        return self._state

    async def run(self) -> Optional[PollReport]:
        """Tick until a terminal state or cancellation.

        Returns the terminal report, or None when cancelled.
        """
        if self._attempt is None:
            raise RuntimeError("start() must be called before run()")
        while True:
            state = await self.tick()
            if state is not PollState.POLLING or not self._active:
                return self._report
            await self._sleep(self.interval_seconds)

    def _finish(self, state: PollState) -> None:
        attempt = self._attempt
        self._active = False
        self._state = state
        attempt.status = state
        self._report = PollReport(
            state=state,
            order_id=attempt.gateway_order_id,
            attempts=attempt.attempts_made,
            status=attempt.last_status,
            transaction_id=attempt.transaction_id,
        )
        logger.info("Order %s finished polling: %s after %s attempts",
                    attempt.gateway_order_id, state.value, attempt.attempts_made)
        if self._on_report is not None:
            self._on_report(self._report)
