#!/usr/bin/env python3
"""
Run a full checkout (entry -> contact -> submit -> poll -> outcome) and print each stage.

Uses the mock gateway unless XAFPAY_API_BASE (or --base-url) points at a backend.

Usage (from repo root):
  python scripts/run_checkout.py
  python scripts/run_checkout.py --link "https://pay.example/?amount=2000&reference=WC-1&return_url=https%3A%2F%2Fshop%2Fdone"
  python scripts/run_checkout.py --session-id sess_demo_001 --carrier ORANGE --phone 699123456
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

from xafpay.checkout.controller import CheckoutController, CheckoutState
from xafpay.integrations.clients import select_payment_gateway
from xafpay.integrations.contracts.interfaces import Carrier
from xafpay.utils.config_loader import apply_env_overrides, load_checkout_config

DEFAULT_LINK = "?amount=2000&currency=XAF&reference=WC-1&return_url=https%3A%2F%2Fshop.example.cm%2Fdone"


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive one XafPay checkout end to end")
    parser.add_argument("--link", default=DEFAULT_LINK, help="Checkout link or query string")
    parser.add_argument("--session-id", default=None, help="Open from a server-side session instead of --link")
    parser.add_argument("--phone", default="651234567", help="Payer phone number")
    parser.add_argument("--email", default="payer@example.com", help="Payer email")
    parser.add_argument("--carrier", default="MTN", choices=[c.value for c in Carrier])
    parser.add_argument("--base-url", default=None, help="XafPay backend base URL (overrides config/env)")
    parser.add_argument("--config", default=None, help="Path to checkout_config.yml")
    return parser.parse_args()


async def main() -> int:
    load_dotenv()
    setup_logging()
    args = parse_args()

    config = apply_env_overrides(load_checkout_config(Path(args.config) if args.config else None))
    if args.base_url:
        config = config.model_copy(update={"gateway": config.gateway.model_copy(update={"base_url": args.base_url})})
    gateway = select_payment_gateway(config.gateway)

    if args.session_id:
        controller = await CheckoutController.mount_session(args.session_id, gateway, config)
    else:
        controller = CheckoutController.mount(args.link, gateway, config)
    print_stage("ENTRY", controller.snapshot())

    if controller.state is CheckoutState.INVALID_ENTRY:
        print_stage("INVALID LINK", controller.status_message)
        return 1

    await controller.start()
    print_stage("BACKEND STATUS", controller.backend_status)

    errors = controller.update_contact(phone=args.phone, email=args.email, carrier=Carrier(args.carrier))
    print_stage("CONTACT", {"field_errors": errors, "can_submit": controller.can_submit})
    if not controller.can_submit:
        return 1

    await controller.submit()
    print_stage("SUBMITTED", controller.snapshot())

    await controller.wait()
    print_stage("OUTCOME", controller.snapshot())
    return 0 if controller.state is CheckoutState.SUCCEEDED else 2


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
