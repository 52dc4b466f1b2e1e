"""
XafPay checkout client.

Collects a payer's mobile-money contact details, submits a payment against a
fixed amount supplied by the merchant, and tracks it to a terminal outcome.

Layout:
- checkout/       entry parsing, contact validation, polling, orchestration
- integrations/   payment gateway contract and its HTTP / mock clients
- utils/          configuration loading
- api/            JSON HTTP surface over the checkout controller
"""

__version__ = "1.0.0"
