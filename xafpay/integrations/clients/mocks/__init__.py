"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- no XafPay backend base URL is configured
- we want to exercise the checkout end-to-end without external dependencies

Important:
- Mock clients implement the SAME PaymentGateway interface as real HTTP clients.
- Mock clients return data shaped according to xafpay/integrations/contracts/*
"""
