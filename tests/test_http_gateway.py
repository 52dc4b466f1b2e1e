import json
from decimal import Decimal

import httpx
import pytest

from xafpay.errors import NetworkError
from xafpay.integrations.clients.real_http.gateway import HttpPaymentGateway
from xafpay.integrations.contracts.interfaces import Carrier, InitiateRequest, PaymentMode
from xafpay.integrations.policy.response_wrappers import IntegrationResponseError
from xafpay.utils.config_loader import GatewayConfig

BASE = "https://api.xafpay.test/api"


def _gateway(handler, **config):
    return HttpPaymentGateway(GatewayConfig(base_url=BASE + "/", **config), transport=httpx.MockTransport(handler))


def _request(**overrides):
    values = dict(
        amount=Decimal("2000"),
        currency="XAF",
        reference="WC-1",
        return_url="https://shop/done",
        phone="651234567",
        email="payer@example.com",
        carrier=Carrier.MTN,
    )
    values.update(overrides)
    return InitiateRequest(**values)


def test_base_url_is_required():
    with pytest.raises(ValueError):
        HttpPaymentGateway(GatewayConfig())


@pytest.mark.asyncio
async def test_initiate_posts_payload_and_parses_direct_response():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True, "order_id": "XF-42", "mode": "direct"})

    response = await _gateway(handler, api_key="secret").initiate(_request())

    assert seen["url"] == f"{BASE}/pay.php"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {
        "amount": 2000,
        "currency": "XAF",
        "phone": "651234567",
        "email": "payer@example.com",
        "carrier": "MTN",
        "reference": "WC-1",
        "wc_order_id": "WC-1",
        "return_url": "https://shop/done",
    }
    assert response.ok is True
    assert response.order_id == "XF-42"
    assert response.mode is PaymentMode.DIRECT


@pytest.mark.asyncio
async def test_fractional_amount_is_sent_as_number():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True, "order_id": "XF-1"})

    await _gateway(handler).initiate(_request(amount=Decimal("12.50")))
    assert seen["body"]["amount"] == 12.5


@pytest.mark.asyncio
async def test_initiate_redirect_mode():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "order_id": "XF-1", "mode": "REDIRECT", "redirect_url": "https://pay/x"})

    response = await _gateway(handler).initiate(_request())
    assert response.mode is PaymentMode.REDIRECT
    assert response.redirect_url == "https://pay/x"


@pytest.mark.asyncio
async def test_initiate_rejection_keeps_error_text_even_on_http_error_status():
    def handler(request):
        return httpx.Response(400, json={"ok": False, "error": "Invalid MSISDN"})

    response = await _gateway(handler).initiate(_request())
    assert response.ok is False
    assert response.error == "Invalid MSISDN"


@pytest.mark.asyncio
async def test_non_json_body_is_integration_error():
    def handler(request):
        return httpx.Response(200, text="<b>Fatal error</b> in pay.php")

    with pytest.raises(IntegrationResponseError):
        await _gateway(handler).initiate(_request())


@pytest.mark.asyncio
async def test_http_error_without_protocol_body_is_network_error():
    def handler(request):
        return httpx.Response(502, json={"message": "bad gateway"})

    with pytest.raises(NetworkError):
        await _gateway(handler).initiate(_request())


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as exc_info:
        await _gateway(handler).query_status("XF-1")
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_redirect_without_url_is_malformed():
    def handler(request):
        return httpx.Response(200, json={"ok": True, "order_id": "XF-1", "mode": "REDIRECT"})

    with pytest.raises(IntegrationResponseError):
        await _gateway(handler).initiate(_request())


@pytest.mark.asyncio
async def test_query_status_sends_order_id():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["order_id"] = request.url.params.get("order_id")
        return httpx.Response(200, json={"ok": True, "status": "SUCCESSFUL", "transaction_id": 991})

    response = await _gateway(handler).query_status("XF-42")

    assert seen == {"path": "/api/check_payment.php", "order_id": "XF-42"}
    assert response.ok is True
    assert response.status == "SUCCESSFUL"
    assert response.transaction_id == "991"


@pytest.mark.asyncio
async def test_query_status_not_ok():
    def handler(request):
        return httpx.Response(200, json={"ok": False})

    response = await _gateway(handler).query_status("XF-42")
    assert response.ok is False
    assert response.status == ""
    assert response.transaction_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize("code, expected", [(200, True), (503, False)])
async def test_probe_health(code, expected):
    def handler(request):
        assert request.url.path == "/api/health.php"
        return httpx.Response(code, text="ok")

    assert await _gateway(handler).probe_health() is expected


@pytest.mark.asyncio
async def test_probe_health_unreachable_raises_network_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(NetworkError):
        await _gateway(handler).probe_health()


@pytest.mark.asyncio
async def test_load_session():
    def handler(request):
        assert request.url.params.get("session_id") == "sess-1"
        return httpx.Response(200, json={"ok": True, "data": {"order_id": "WC-9", "amount": 2500, "currency": "XAF"}})

    session = await _gateway(handler).load_session("sess-1")
    assert session.session_id == "sess-1"
    assert session.order_id == "WC-9"
    assert session.amount == "2500"
    assert session.return_url is None


@pytest.mark.asyncio
async def test_load_session_error():
    def handler(request):
        return httpx.Response(200, json={"ok": False, "error": "Session expired"})

    with pytest.raises(IntegrationResponseError) as exc_info:
        await _gateway(handler).load_session("sess-1")
    assert "Session expired" in str(exc_info.value)


@pytest.mark.asyncio
async def test_list_sessions():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "data": [
                    {"id": 3, "carrier_code": "MTN", "amount": "2000", "currency": "XAF", "status": "paid"},
                    {"id": 4, "carrier_code": "ORANGE", "amount": "500", "currency": "XAF", "status": "pending"},
                ],
            },
        )

    sessions = await _gateway(handler).list_sessions()
    assert [s.session_id for s in sessions] == ["3", "4"]
    assert sessions[1].carrier_code == "ORANGE"
