"""
Checkout configuration loader (gateway endpoints, polling bounds, checkout behaviour).

The loaded AppConfig is frozen: it is built once at startup and injected into
the gateway and controller instead of being read ad hoc.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "checkout_config.yml"


class GatewayConfig(BaseModel):
    """XafPay backend endpoints"""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    api_key: str = ""
    health_path: str = "/health.php"
    initiate_path: str = "/pay.php"
    status_path: str = "/check_payment.php"
    session_path: str = "/session.php"
    sessions_path: str = "/sessions.php"
    timeout_seconds: float = Field(default=20.0, gt=0.0, le=120.0)


class PollingConfig(BaseModel):
    """Status polling bounds"""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=15, ge=1, le=200)
    interval_seconds: float = Field(default=3.0, ge=0.0, le=60.0)


class CheckoutSettings(BaseModel):
    """Entry parsing and contact validation behaviour"""

    model_config = ConfigDict(frozen=True)

    default_currency: str = "XAF"
    strict_mode: bool = True
    require_email: bool = True
    default_return_url: str = "/"
    redirect_delay_seconds: float = Field(default=1.0, ge=0.0, le=30.0)
    idle_ttl_seconds: float = Field(default=1800.0, gt=0.0)
    max_open_checkouts: int = Field(default=1000, ge=1)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)


def load_checkout_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load and validate checkout configuration from a YAML file

    Args:
        config_path: Path to config file. Defaults to config/checkout_config.yml;
            when the default file is absent the built-in defaults are used.

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            logger.warning("No checkout config at %s, using defaults", DEFAULT_CONFIG_PATH)
            return AppConfig()
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Checkout config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        cfg = AppConfig(**data)
        logger.info("Successfully loaded checkout config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("Checkout config validation failed: %s", e)
        raise


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """Return a copy of ``config`` with XAFPAY_API_BASE / XAFPAY_API_KEY applied."""
    updates = {}
    base_url = os.getenv("XAFPAY_API_BASE", "").strip()
    api_key = os.getenv("XAFPAY_API_KEY", "").strip()
    if base_url:
        updates["base_url"] = base_url
    if api_key:
        updates["api_key"] = api_key
    if not updates:
        return config
    return config.model_copy(update={"gateway": config.gateway.model_copy(update=updates)})
