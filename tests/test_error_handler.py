from xafpay.checkout.messages import ERROR_MESSAGES
from xafpay.error_handler import ErrorHandler
from xafpay.errors import ContactValidationError, EntryError, GatewayError, NetworkError


def test_handle_exception_returns_payload():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["error_type"] == "network"
    assert out["message"] == ERROR_MESSAGES["network"]
    assert out["fatal"] is False
    assert "boom" in out["metadata"]["error"]
    assert out["metadata"]["context"] == {"k": "v"}


def test_entry_error_is_fatal():
    out = ErrorHandler().handle_exception(EntryError("amount is missing", field="amount"))
    assert out["error_type"] == "entry"
    assert out["fatal"] is True
    assert out["message"] == ERROR_MESSAGES["invalid_link"]


def test_gateway_message_is_passed_through():
    out = ErrorHandler().handle_exception(GatewayError("Insufficient balance"))
    assert out["error_type"] == "gateway"
    assert out["message"] == "Insufficient balance"


def test_gateway_error_without_text_uses_payment_failed():
    out = ErrorHandler().handle_exception(GatewayError(""))
    assert out["message"] == ERROR_MESSAGES["payment_failed"]


def test_network_error_is_generic():
    out = ErrorHandler().handle_exception(NetworkError("HTTP 502"))
    assert out["message"] == ERROR_MESSAGES["network"]
    assert "HTTP 502" in out["metadata"]["error"]


def test_validation_error_carries_field_errors():
    exc = ContactValidationError(field_errors={"phone": "Phone is required"})
    out = ErrorHandler().handle_exception(exc)
    assert out["error_type"] == "validation"
    assert out["field_errors"] == {"phone": "Phone is required"}
    assert out["message"] == "Validation failed"
