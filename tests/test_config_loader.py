import pytest
from pydantic import ValidationError

from xafpay.integrations.clients import select_payment_gateway, should_use_real_gateway
from xafpay.integrations.clients.mocks.gateway import MockPaymentGateway
from xafpay.integrations.clients.real_http.gateway import HttpPaymentGateway
from xafpay.utils.config_loader import (
    AppConfig,
    GatewayConfig,
    apply_env_overrides,
    load_checkout_config,
)


def test_bundled_config_matches_defaults():
    cfg = load_checkout_config()
    assert cfg.polling.max_attempts == 15
    assert cfg.polling.interval_seconds == 3.0
    assert cfg.checkout.redirect_delay_seconds == 1.0
    assert cfg.checkout.strict_mode is True
    assert cfg.gateway.initiate_path == "/pay.php"
    assert cfg.checkout.idle_ttl_seconds == 1800
    assert cfg.checkout.max_open_checkouts == 1000


def test_partial_yaml_keeps_other_defaults(tmp_path):
    path = tmp_path / "checkout.yml"
    path.write_text("polling:\n  max_attempts: 5\ncheckout:\n  require_email: false\n", encoding="utf-8")

    cfg = load_checkout_config(path)

    assert cfg.polling.max_attempts == 5
    assert cfg.polling.interval_seconds == 3.0
    assert cfg.checkout.require_email is False
    assert cfg.checkout.default_currency == "XAF"


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_checkout_config(path) == AppConfig()


def test_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_checkout_config(tmp_path / "nope.yml")


@pytest.mark.parametrize("body", ["polling:\n  max_attempts: 0\n", "gateway:\n  timeout_seconds: -1\n"])
def test_out_of_range_values_are_rejected(tmp_path, body):
    path = tmp_path / "bad.yml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValidationError):
        load_checkout_config(path)


def test_config_is_frozen():
    cfg = AppConfig()
    with pytest.raises(ValidationError):
        cfg.polling.max_attempts = 3


def test_env_overrides_gateway_credentials(monkeypatch):
    monkeypatch.setenv("XAFPAY_API_BASE", "https://api.xafpay.test")
    monkeypatch.setenv("XAFPAY_API_KEY", "k-1")
    base = AppConfig()

    cfg = apply_env_overrides(base)

    assert cfg.gateway.base_url == "https://api.xafpay.test"
    assert cfg.gateway.api_key == "k-1"
    assert base.gateway.base_url == ""


def test_no_env_returns_same_config(monkeypatch):
    monkeypatch.delenv("XAFPAY_API_BASE", raising=False)
    monkeypatch.delenv("XAFPAY_API_KEY", raising=False)
    base = AppConfig()
    assert apply_env_overrides(base) is base


@pytest.mark.parametrize(
    "mode, base_url, expected",
    [
        ("", "", False),
        ("", "https://api.xafpay.test", True),
        ("mock", "https://api.xafpay.test", False),
        ("TEST", "https://api.xafpay.test", False),
        ("real", "https://api.xafpay.test", True),
        ("live", "https://api.xafpay.test", True),
    ],
)
def test_should_use_real_gateway(monkeypatch, mode, base_url, expected):
    monkeypatch.setenv("INTEGRATIONS_MODE", mode)
    assert should_use_real_gateway(GatewayConfig(base_url=base_url)) is expected


def test_select_payment_gateway(monkeypatch):
    monkeypatch.delenv("INTEGRATIONS_MODE", raising=False)
    assert isinstance(select_payment_gateway(GatewayConfig()), MockPaymentGateway)
    assert isinstance(select_payment_gateway(GatewayConfig(base_url="https://api.xafpay.test")), HttpPaymentGateway)
