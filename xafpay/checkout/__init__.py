"""
Checkout flow: entry parameters -> contact validation -> submit -> poll -> terminate.

Modules:
- entry.py       parse and trust rules for checkout invocation parameters
- validation.py  carrier-aware phone and email rules
- polling.py     bounded, cancellable status polling state machine
- controller.py  orchestration of the whole flow for one checkout instance
- messages.py    payer-facing status text
"""
