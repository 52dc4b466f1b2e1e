"""
Real HTTP integration clients.

These clients talk to the XafPay PHP backend over HTTP.

Important:
- Must implement the same interface as the mock clients
- Must return data shaped according to xafpay/integrations/contracts/*
"""
