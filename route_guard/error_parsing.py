"""
Classify raw failures into the error taxonomy.

Wallet libraries and nodes report failures with a mix of numeric JSON-RPC /
EIP-1193 codes, string codes and well-known message fragments.
``parse_error`` maps them onto ``StructuredError`` so callers only ever
branch on our own codes. ``parse_backend_error`` does the same for
``HTTPError``s raised by the route API client.

The original exception's traceback is kept on the result (``stack``) and
chained as ``__cause__``.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import (
    ErrorCode,
    ErrorMessage,
    ProviderErrorCode,
    RPCErrorCode,
    StructuredError,
    WalletErrorMessage,
    WalletErrorType,
    format_stack,
    not_found_error,
    provider_error,
    rpc_error,
    server_error,
    slippage_error,
    transaction_error,
    unknown_error,
    validation_error,
)
from .models import Process, Step


RPC_MESSAGES = {
    RPCErrorCode.PARSE: "Invalid JSON was received by the server.",
    RPCErrorCode.INVALID_REQUEST: "The JSON sent is not a valid Request object.",
    RPCErrorCode.METHOD_NOT_FOUND: "The method does not exist / is not available.",
    RPCErrorCode.INVALID_PARAMS: "Invalid method parameter(s).",
    RPCErrorCode.INTERNAL: "Internal JSON-RPC error.",
    RPCErrorCode.INVALID_INPUT: "Invalid input.",
    RPCErrorCode.RESOURCE_NOT_FOUND: "Resource not found.",
    RPCErrorCode.RESOURCE_UNAVAILABLE: "Resource unavailable.",
    RPCErrorCode.TRANSACTION_REJECTED: "Transaction rejected.",
    RPCErrorCode.METHOD_NOT_SUPPORTED: "Method not supported.",
    RPCErrorCode.LIMIT_EXCEEDED: "Request limit exceeded.",
}


PROVIDER_MESSAGES = {
    ProviderErrorCode.USER_REJECTED_REQUEST: "User rejected the request.",
    ProviderErrorCode.UNAUTHORIZED: "The requested account and/or method has not been authorized by the user.",
    ProviderErrorCode.UNSUPPORTED_METHOD: "The requested method is not supported by this Ethereum provider.",
    ProviderErrorCode.DISCONNECTED: "The provider is disconnected from all chains.",
    ProviderErrorCode.CHAIN_DISCONNECTED: "The provider is disconnected from the specified chain.",
}


_RPC_CODES = {c.value for c in RPCErrorCode}
_PROVIDER_CODES = {c.value for c in ProviderErrorCode}
_OWN_CODES = {c.value for c in ErrorCode}


def _explorer_link(process: Optional[Process]) -> str:
    if process is None or not process.tx_link:
        return ""
    return (
        f' Please check the <a href="{process.tx_link}" target="_blank" '
        'rel="nofollow noreferrer">block explorer</a> for more information.'
    )


def _format_amount(amount: str, decimals: int) -> str:
    try:
        value = Decimal(amount).scaleb(-decimals)
    except InvalidOperation:
        return amount
    return format(value.normalize(), "f")


def get_transaction_not_sent_message(step: Optional[Step] = None, process: Optional[Process] = None) -> str:
    """html message for a transaction that never left the wallet."""
    msg = "Transaction was not sent, your funds are still in your wallet"
    if step is not None:
        action = step.action
        if action.from_token is not None and action.from_amount:
            amount = _format_amount(action.from_amount, action.from_token.decimals)
            msg += f" ({amount} {action.from_token.symbol} on chain {action.from_chain_id})"
    return msg + "." + _explorer_link(process)


def get_transaction_failed_message(step: Optional[Step] = None, process: Optional[Process] = None) -> str:
    """html message for a transaction that was sent but reverted."""
    msg = "Transaction failed"
    if step is not None:
        msg += f" on chain {step.from_chain_id}"
    return msg + "." + _explorer_link(process)


def _int_code(code: Any) -> Optional[int]:
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    return int(code)


def _message_of(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


def _chain(err: StructuredError, cause: BaseException) -> StructuredError:
    err.__cause__ = cause
    return err


def parse_error(exc: BaseException, step: Optional[Step] = None, process: Optional[Process] = None) -> StructuredError:
    """Map an arbitrary wallet/provider/node failure onto a ``StructuredError``."""
    if isinstance(exc, StructuredError):
        return exc

    stack = format_stack(exc)
    message = _message_of(exc)
    code = getattr(exc, "code", None)
    num = _int_code(code)

    if code == WalletErrorType.ACTION_REJECTED.value or num == ProviderErrorCode.USER_REJECTED_REQUEST:
        return _chain(transaction_error(
            ErrorCode.TRANSACTION_REJECTED,
            message or PROVIDER_MESSAGES[ProviderErrorCode.USER_REJECTED_REQUEST],
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    if num in _RPC_CODES:
        if num == RPCErrorCode.INTERNAL and WalletErrorMessage.UNDERPRICED.value in message:
            return _chain(rpc_error(
                ErrorCode.TRANSACTION_UNDERPRICED,
                ErrorMessage.TRANSACTION_UNDERPRICED.value,
                get_transaction_not_sent_message(step, process),
                stack,
            ), exc)
        if WalletErrorMessage.LOW_REPLACEMENT_FEE.value in message:
            return _chain(transaction_error(
                ErrorCode.GAS_LIMIT_ERROR,
                ErrorMessage.GAS_LIMIT_LOW.value,
                get_transaction_not_sent_message(step, process),
                stack,
            ), exc)
        return _chain(rpc_error(
            RPCErrorCode(num),
            RPC_MESSAGES[RPCErrorCode(num)],
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    if num in _PROVIDER_CODES:
        return _chain(provider_error(
            ProviderErrorCode(num),
            PROVIDER_MESSAGES[ProviderErrorCode(num)],
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    if code == WalletErrorType.INSUFFICIENT_FUNDS.value:
        return _chain(transaction_error(
            ErrorCode.INSUFFICIENT_FUNDS,
            message,
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    if code == WalletErrorType.CALL_EXCEPTION.value:
        reason = getattr(exc, "reason", None) or message
        return _chain(provider_error(
            ErrorCode.TRANSACTION_FAILED,
            reason,
            get_transaction_failed_message(step, process),
            stack,
        ), exc)

    if num in _OWN_CODES:
        return _chain(transaction_error(
            ErrorCode(num),
            message,
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    if WalletErrorMessage.ERC20_ALLOWANCE.value in message:
        return _chain(transaction_error(ErrorCode.ALLOWANCE_REQUIRED, message, None, stack), exc)
    if WalletErrorMessage.OUT_OF_GAS.value in message or WalletErrorMessage.LOW_GAS.value in message:
        return _chain(transaction_error(
            ErrorCode.GAS_LIMIT_ERROR,
            ErrorMessage.GAS_LIMIT_LOW.value,
            get_transaction_not_sent_message(step, process),
            stack,
        ), exc)

    return _chain(unknown_error(
        ErrorCode.INTERNAL_ERROR,
        message or ErrorMessage.UNKNOWN_ERROR.value,
        None,
        stack,
    ), exc)


def parse_backend_error(exc: BaseException) -> StructuredError:
    """Map a failed route API call onto a ``StructuredError``."""
    if isinstance(exc, StructuredError):
        return exc

    stack = format_stack(exc)
    status = getattr(exc, "status", None)
    data = getattr(exc, "data", None)
    data_message = data.get("message") if isinstance(data, dict) else None
    text = data_message or getattr(exc, "status_text", None) or str(exc)

    if status == 400:
        err = validation_error(text, None, stack)
    elif status == 404:
        err = not_found_error(text, None, stack)
    elif status == 409:
        err = slippage_error(data_message or ErrorMessage.SLIPPAGE_ERROR.value, None, stack)
    elif status == 500:
        err = server_error(text, None, stack)
    else:
        err = server_error(ErrorMessage.DEFAULT.value, None, stack)
    return _chain(err, exc)
