"""
Gateway client selection.

INTEGRATIONS_MODE=real|live forces the HTTP gateway, mock|test forces the
mock. Otherwise the HTTP gateway is used whenever a base URL is configured.
"""

import logging
import os

from xafpay.integrations.clients.mocks.gateway import MockPaymentGateway
from xafpay.integrations.clients.real_http.gateway import HttpPaymentGateway
from xafpay.integrations.contracts.interfaces import PaymentGateway
from xafpay.utils.config_loader import GatewayConfig

logger = logging.getLogger(__name__)


def should_use_real_gateway(config: GatewayConfig) -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return bool(config.base_url)


def select_payment_gateway(config: GatewayConfig) -> PaymentGateway:
    if should_use_real_gateway(config):
        logger.info("Using XafPay HTTP gateway at %s", config.base_url)
        return HttpPaymentGateway(config)
    logger.info("Using mock XafPay gateway")
    return MockPaymentGateway()
