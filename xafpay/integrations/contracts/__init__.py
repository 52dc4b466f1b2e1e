"""
Contracts (data models).

This folder defines the request/response shapes exchanged with the payment
gateway:
- payment initiation request/response
- status lookup response
- checkout session details

Both mock and real HTTP clients return these contracts, so the checkout
controller and polling engine never handle raw gateway dicts.
"""
