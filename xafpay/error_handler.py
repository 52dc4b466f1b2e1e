"""Turns checkout errors into payer-facing status payloads."""
from typing import Any, Dict
import logging

from xafpay.checkout.messages import ERROR_MESSAGES
from xafpay.errors import ContactValidationError, EntryError, GatewayError, NetworkError

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        field_errors: Dict[str, str] = {}
        fatal = False

        if isinstance(exc, EntryError):
            logger.info("Checkout entry rejected: %s", exc)
            error_type, message, fatal = "entry", ERROR_MESSAGES["invalid_link"], True
        elif isinstance(exc, ContactValidationError):
            error_type, message = "validation", exc.message
            field_errors = dict(exc.field_errors)
        elif isinstance(exc, GatewayError):
            logger.warning("Gateway rejected payment: %s", exc)
            error_type, message = "gateway", str(exc) or ERROR_MESSAGES["payment_failed"]
        elif isinstance(exc, NetworkError):
            logger.warning("Gateway unreachable or malformed response: %s", exc)
            error_type, message = "network", ERROR_MESSAGES["network"]
        else:
            logger.error("Unhandled exception in checkout: %s", exc, exc_info=True)
            error_type, message = "network", ERROR_MESSAGES["network"]

        return {
            "message": message,
            "error_type": error_type,
            "fatal": fatal,
            "field_errors": field_errors,
            "metadata": {"error": str(exc), "context": context or {}},
        }
