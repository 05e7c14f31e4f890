import types

import pytest

from route_guard.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorMessage,
    HTTPError,
    StructuredError,
    balance_error,
    chain_switch_error,
    not_found_error,
    provider_error,
    raise_for_status,
    rpc_error,
    server_error,
    slippage_error,
    transaction_error,
    unknown_error,
    validation_error,
)


PUBLIC_CODES = {
    "INTERNAL_ERROR": 1000,
    "VALIDATION_ERROR": 1001,
    "TRANSACTION_UNDERPRICED": 1002,
    "TRANSACTION_FAILED": 1003,
    "TIMEOUT": 1004,
    "PROVIDER_UNAVAILABLE": 1005,
    "NOT_FOUND": 1006,
    "CHAIN_SWITCH_ERROR": 1007,
    "TRANSACTION_UNPREPARED": 1008,
    "GAS_LIMIT_ERROR": 1009,
    "TRANSACTION_CANCELED": 1010,
    "SLIPPAGE_ERROR": 1011,
    "TRANSACTION_REJECTED": 1012,
    "BALANCE_ERROR": 1013,
    "ALLOWANCE_REQUIRED": 1014,
    "INSUFFICIENT_FUNDS": 1015,
}


def test_public_codes_are_stable():
    assert {c.name: c.value for c in ErrorCode} == PUBLIC_CODES


@pytest.mark.parametrize("code", list(ErrorCode))
def test_any_code_survives_construction(code):
    err = transaction_error(code, "boom")
    assert err.code == code
    assert int(err.code) == PUBLIC_CODES[code.name]
    assert err.message == "boom"
    assert str(err) == "boom"


@pytest.mark.parametrize("factory, category, code", [
    (server_error, ErrorCategory.SERVER, ErrorCode.INTERNAL_ERROR),
    (validation_error, ErrorCategory.VALIDATION, ErrorCode.VALIDATION_ERROR),
    (slippage_error, ErrorCategory.SLIPPAGE, ErrorCode.SLIPPAGE_ERROR),
    (balance_error, ErrorCategory.VALIDATION, ErrorCode.BALANCE_ERROR),
    (not_found_error, ErrorCategory.NOT_FOUND, ErrorCode.NOT_FOUND),
])
def test_fixed_code_constructors(factory, category, code):
    err = factory("details", "<b>details</b>")
    assert err.category == category
    assert err.name == category.value
    assert err.code == code
    assert err.html_message == "<b>details</b>"


@pytest.mark.parametrize("factory, category", [
    (rpc_error, ErrorCategory.RPC),
    (provider_error, ErrorCategory.PROVIDER),
    (transaction_error, ErrorCategory.TRANSACTION),
    (unknown_error, ErrorCategory.UNKNOWN),
])
def test_coded_constructors(factory, category):
    err = factory(ErrorCode.TIMEOUT, "too slow")
    assert err.category == category
    assert err.code == ErrorCode.TIMEOUT
    assert err.html_message is None
    assert err.stack is None


def test_chain_switch_error():
    err = chain_switch_error()
    assert err.category == ErrorCategory.PROVIDER
    assert err.code == 1007
    assert err.message == ErrorMessage.CHAIN_SWITCH_REQUIRED.value == "Chain switch required."


def test_error_fields_are_read_only():
    err = validation_error("bad input")
    with pytest.raises(AttributeError):
        err.code = ErrorCode.INTERNAL_ERROR
    with pytest.raises(AttributeError):
        err.message = "other"


def _failing_lookup():
    return {}["missing"]


def test_wrap_preserves_original_stack():
    try:
        _failing_lookup()
    except KeyError as exc:
        err = StructuredError.wrap(exc, ErrorCategory.SERVER, ErrorCode.INTERNAL_ERROR)
        cause = exc

    assert err.__cause__ is cause
    assert "_failing_lookup" in err.stack
    assert "KeyError" in err.stack
    assert err.message == "'missing'"


def test_to_dict():
    err = provider_error(ErrorCode.PROVIDER_UNAVAILABLE, "no rpc", "<i>no rpc</i>")
    assert err.to_dict() == {
        "name": "ProviderError",
        "code": 1005,
        "message": "no rpc",
        "html_message": "<i>no rpc</i>",
    }


# ============================================================================
# HTTPError
# ============================================================================

def test_http_error_from_aiohttp_style_response():
    response = types.SimpleNamespace(status=404, reason="Not Found")
    err = HTTPError(response)

    assert str(err) == "Request failed with status code 404 Not Found"
    assert err.message == str(err)
    assert err.status == 404
    assert err.status_text == "Not Found"
    assert err.name == "HTTPError"
    assert err.response is response


def test_http_error_with_status_text_attribute():
    err = HTTPError(types.SimpleNamespace(status=500, status_text="Internal Server Error"))
    assert str(err) == "Request failed with status code 500 Internal Server Error"


def test_http_error_status_zero_counts():
    err = HTTPError(types.SimpleNamespace(status=0, reason=None))
    assert str(err) == "Request failed with status code 0"


def test_http_error_without_status_or_text():
    err = HTTPError(types.SimpleNamespace(status=None, reason=""))
    assert str(err) == "Request failed with an unknown error"


def test_http_error_text_only():
    err = HTTPError(types.SimpleNamespace(status=None, reason="Bad Gateway"))
    assert str(err) == "Request failed with status code Bad Gateway"


def test_raise_for_status():
    raise_for_status(types.SimpleNamespace(status=204, reason="No Content"))
    with pytest.raises(HTTPError):
        raise_for_status(types.SimpleNamespace(status=429, reason="Too Many Requests"))
