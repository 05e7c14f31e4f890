"""
Error taxonomy for route execution.

Every failure reported by the guard is a ``StructuredError``: one exception
type tagged with a coarse category (which subsystem failed) and a fine
numeric code (what exactly failed). Callers branch on ``code`` and
log/group on ``category``.

Our codes live in a flat space starting at 1000 so they never collide with
wallet-native codes (JSON-RPC -327xx/-320xx, EIP-1193 4xxx), which are kept
in their own enums.

``HTTPError`` is unrelated to the taxonomy: it describes a non-2xx response
from the route API and keeps the shape callers already pattern-match on.
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union
import traceback


class ErrorCategory(str, Enum):
    """Coarse error categories. The value doubles as the error name."""
    RPC = "RPCError"
    PROVIDER = "ProviderError"
    SERVER = "ServerError"
    TRANSACTION = "TransactionError"
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFoundError"
    UNKNOWN = "UnknownError"
    SLIPPAGE = "SlippageError"


class ErrorCode(IntEnum):
    """Stable public error codes. Never renumber."""
    INTERNAL_ERROR = 1000
    VALIDATION_ERROR = 1001
    TRANSACTION_UNDERPRICED = 1002
    TRANSACTION_FAILED = 1003
    TIMEOUT = 1004
    PROVIDER_UNAVAILABLE = 1005
    NOT_FOUND = 1006
    CHAIN_SWITCH_ERROR = 1007
    TRANSACTION_UNPREPARED = 1008
    GAS_LIMIT_ERROR = 1009
    TRANSACTION_CANCELED = 1010
    SLIPPAGE_ERROR = 1011
    TRANSACTION_REJECTED = 1012
    BALANCE_ERROR = 1013
    ALLOWANCE_REQUIRED = 1014
    INSUFFICIENT_FUNDS = 1015


class RPCErrorCode(IntEnum):
    """JSON-RPC error codes reported by wallets (EIP-1474)."""
    INVALID_INPUT = -32000
    RESOURCE_NOT_FOUND = -32001
    RESOURCE_UNAVAILABLE = -32002
    TRANSACTION_REJECTED = -32003
    METHOD_NOT_SUPPORTED = -32004
    LIMIT_EXCEEDED = -32005
    PARSE = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL = -32603


class ProviderErrorCode(IntEnum):
    """Provider error codes reported by wallets (EIP-1193)."""
    USER_REJECTED_REQUEST = 4001
    UNAUTHORIZED = 4100
    UNSUPPORTED_METHOD = 4200
    DISCONNECTED = 4900
    CHAIN_DISCONNECTED = 4901


class WalletErrorType(str, Enum):
    """String codes set by ethers-style wallet libraries."""
    ACTION_REJECTED = "ACTION_REJECTED"
    CALL_EXCEPTION = "CALL_EXCEPTION"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"


class WalletErrorMessage(str, Enum):
    """Message fragments that identify well-known node failures."""
    ERC20_ALLOWANCE = "ERC20: transfer amount exceeds allowance"
    LOW_GAS = "intrinsic gas too low"
    OUT_OF_GAS = "out of gas"
    UNDERPRICED = "underpriced"
    LOW_REPLACEMENT_FEE = "replacement fee too low"


class ErrorMessage(str, Enum):
    UNKNOWN_ERROR = "Unknown error occurred."
    SLIPPAGE_ERROR = (
        "The slippage is larger than the defined threshold. "
        "Please request a new route to get a fresh quote."
    )
    GAS_LIMIT_LOW = "Gas limit is too low."
    TRANSACTION_UNDERPRICED = "Transaction is underpriced."
    CHAIN_SWITCH_REQUIRED = "Chain switch required."
    DEFAULT = "Something went wrong."


AnyErrorCode = Union[ErrorCode, RPCErrorCode, ProviderErrorCode, int]


def format_stack(exc: BaseException) -> str:
    """Formatted traceback of ``exc``, as it would be printed."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class StructuredError(Exception):
    """
    Tagged error: category + code + message, with optional rich message and
    a stack carried over from the exception it was built from.

    Fields are read-only after construction.
    """

    def __init__(
        self,
        category: ErrorCategory,
        code: AnyErrorCode,
        message: str,
        html_message: Optional[str] = None,
        stack: Optional[str] = None,
    ):
        super().__init__(message)
        self._category = ErrorCategory(category)
        self._code = code
        self._message = message
        self._html_message = html_message
        self._stack = stack

    @classmethod
    def wrap(
        cls,
        cause: BaseException,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        code: AnyErrorCode = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        html_message: Optional[str] = None,
    ) -> "StructuredError":
        """Build an error from a caught exception, keeping its stack."""
        text = message or str(cause) or ErrorMessage.UNKNOWN_ERROR.value
        err = cls(category, code, text, html_message, format_stack(cause))
        err.__cause__ = cause
        return err

    @property
    def category(self) -> ErrorCategory:
        return self._category

    @property
    def name(self) -> str:
        return self._category.value

    @property
    def code(self) -> AnyErrorCode:
        return self._code

    @property
    def message(self) -> str:
        return self._message

    @property
    def html_message(self) -> Optional[str]:
        return self._html_message

    @property
    def stack(self) -> Optional[str]:
        return self._stack

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "code": int(self._code),
            "message": self._message,
            "html_message": self._html_message,
        }

    def __reduce__(self):
        return (
            self.__class__,
            (self._category, self._code, self._message, self._html_message, self._stack),
        )

    def __repr__(self) -> str:
        return f"{self.name}(code={int(self._code)}, message={self._message!r})"


# Per-category constructors. Categories with a fixed code take only the text.

def rpc_error(code: AnyErrorCode, message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.RPC, code, message, html_message, stack)


def provider_error(code: AnyErrorCode, message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.PROVIDER, code, message, html_message, stack)


def transaction_error(code: AnyErrorCode, message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.TRANSACTION, code, message, html_message, stack)


def unknown_error(code: AnyErrorCode, message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.UNKNOWN, code, message, html_message, stack)


def server_error(message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.SERVER, ErrorCode.INTERNAL_ERROR, message, html_message, stack)


def validation_error(message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.VALIDATION, ErrorCode.VALIDATION_ERROR, message, html_message, stack)


def slippage_error(message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.SLIPPAGE, ErrorCode.SLIPPAGE_ERROR, message, html_message, stack)


def balance_error(message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    # balance problems are reported as validation failures with their own code
    return StructuredError(ErrorCategory.VALIDATION, ErrorCode.BALANCE_ERROR, message, html_message, stack)


def not_found_error(message: str, html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return StructuredError(ErrorCategory.NOT_FOUND, ErrorCode.NOT_FOUND, message, html_message, stack)


def chain_switch_error(html_message: Optional[str] = None, stack: Optional[str] = None) -> StructuredError:
    return provider_error(
        ErrorCode.CHAIN_SWITCH_ERROR,
        ErrorMessage.CHAIN_SWITCH_REQUIRED.value,
        html_message,
        stack,
    )


class HTTPError(Exception):
    """
    Non-2xx response from a network call.

    Accepts an aiohttp ``ClientResponse`` (``status`` / ``reason``) or any
    object exposing ``status`` and ``status_text``.
    """

    def __init__(self, response: Any):
        status = getattr(response, "status", None)
        status_text = getattr(response, "status_text", None)
        if status_text is None:
            status_text = getattr(response, "reason", None)
        status_text = status_text or ""

        # status 0 still counts as a status
        code = str(status) if status or status == 0 else ""
        line = f"{code} {status_text}".strip()
        reason = f"status code {line}" if line else "an unknown error"

        super().__init__(f"Request failed with {reason}")
        self.name = "HTTPError"
        self.response = response
        self.status = status
        self.status_text = status_text
        self.message = str(self)


def raise_for_status(response: Any) -> None:
    """Raise ``HTTPError`` unless ``response`` has a 2xx status."""
    status = getattr(response, "status", None)
    if status is None or not 200 <= int(status) < 300:
        raise HTTPError(response)
