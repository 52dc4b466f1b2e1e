"""
Centralized payer-facing status messages for the checkout.
All text shown to payers should be defined here.
"""

ERROR_MESSAGES = {
    'invalid_link': '❌ Invalid checkout link. Please return to the shop.',
    'network': '❌ Network or payment error.',
    'payment_failed': '❌ Payment failed.',
    'session_not_found': '❌ No checkout session found. Please return to merchant site.',
}

INFO_MESSAGES = {
    'approve_on_phone': '🔁 Check your phone to approve payment…',
    'submitting': 'Processing…',
    'redirecting_to_provider': 'Redirecting to the payment page…',
    'success': '✅ Payment successful. Redirecting…',
    'timed_out': '⚠ Payment pending. Check your phone.',
}

BACKEND_STATUS = {
    'connected': '🟢 Backend Connected',
    'issue': '🟠 Backend Issue',
    'offline': '🔴 Backend Offline',
}
