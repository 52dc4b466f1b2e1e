"""
Utility modules for the checkout client
"""
from .config_loader import (
    AppConfig,
    CheckoutSettings,
    GatewayConfig,
    PollingConfig,
    apply_env_overrides,
    load_checkout_config,
)

__all__ = [
    'AppConfig',
    'CheckoutSettings',
    'GatewayConfig',
    'PollingConfig',
    'apply_env_overrides',
    'load_checkout_config',
]
