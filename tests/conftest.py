"""Pytest fixtures for checkout tests."""

import asyncio

import pytest

from xafpay.errors import NetworkError
from xafpay.integrations.contracts.interfaces import (
    CheckoutSession,
    InitiateResponse,
    PaymentGateway,
    SessionSummary,
    StatusResponse,
)
from xafpay.utils.config_loader import AppConfig, PollingConfig


class ScriptedGateway(PaymentGateway):
    """In-memory gateway whose answers are set by the test.

    ``statuses`` is consumed one item per status query; an item may be a
    StatusResponse or an exception to raise. Once empty, ``default_status``
    is returned.
    """

    def __init__(self):
        self.initiate_response = InitiateResponse(ok=True, order_id="XF-1")
        self.initiate_error = None
        self.statuses = []
        self.default_status = StatusResponse(ok=True, status="PENDING")
        self.healthy = True
        self.sessions = {}

        self.initiate_calls = []
        self.status_calls = []
        self.health_calls = 0
        self.session_calls = []

    @property
    def total_calls(self):
        return len(self.initiate_calls) + len(self.status_calls) + self.health_calls + len(self.session_calls)

    async def initiate(self, request):
        self.initiate_calls.append(request)
        if self.initiate_error is not None:
            raise self.initiate_error
        return self.initiate_response

    async def query_status(self, order_id):
        self.status_calls.append(order_id)
        item = self.statuses.pop(0) if self.statuses else self.default_status
        if isinstance(item, Exception):
            raise item
        return item

    async def probe_health(self):
        self.health_calls += 1
        if isinstance(self.healthy, Exception):
            raise self.healthy
        return self.healthy

    async def load_session(self, session_id):
        self.session_calls.append(session_id)
        if session_id not in self.sessions:
            raise NetworkError("Checkout session not found.")
        return self.sessions[session_id]

    async def list_sessions(self):
        return [
            SessionSummary(session_id=s.session_id, carrier_code="MTN", amount=s.amount,
                           currency=s.currency or "XAF", status="pending")
            for s in self.sessions.values()
        ]


class RecordingSleep:
    """Stands in for asyncio.sleep: records delays, yields control once."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def app_config():
    return AppConfig(polling=PollingConfig(max_attempts=15, interval_seconds=3.0))


@pytest.fixture
def demo_session():
    return CheckoutSession(
        session_id="sess-1",
        order_id="WC-77",
        amount="3500",
        currency="XAF",
        return_url="https://shop.example.cm/done",
    )
