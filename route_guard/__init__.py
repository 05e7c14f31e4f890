"""
Route Guard

Execution-time guard for multi-step cross-chain routes.

Before a step's transaction is sent, the wallet must be connected to the
chain that step runs on. The chain-switch gate checks that, asks the user to
switch when allowed, and records the outcome on the step's execution. Every
failure is reported as a ``StructuredError`` with a stable numeric code.

ARCHITECTURE:
- errors.py: error taxonomy (categories, codes) and HTTPError
- error_parsing.py: classify wallet, node and route API failures
- models.py: Route / Step / Execution / Process data model
- status_manager.py: status tracker contract and in-memory implementation
- switch_chain.py: the chain-switch gate
- settings.py: per-route execution settings (hooks, background mode)
- config.py, logging_setup.py, metrics.py: environment, logging, prometheus
"""

from route_guard.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorMessage,
    HTTPError,
    ProviderErrorCode,
    RPCErrorCode,
    StructuredError,
)
from route_guard.error_parsing import parse_backend_error, parse_error
from route_guard.models import (
    Action,
    Execution,
    Process,
    ProcessError,
    ProcessType,
    Route,
    Status,
    Step,
)
from route_guard.settings import ExecutionSettings
from route_guard.status_manager import StatusManager, StatusTracker
from route_guard.switch_chain import ChainSwitchGate, switch_chain

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorMessage",
    "HTTPError",
    "ProviderErrorCode",
    "RPCErrorCode",
    "StructuredError",
    "parse_backend_error",
    "parse_error",
    "Action",
    "Execution",
    "Process",
    "ProcessError",
    "ProcessType",
    "Route",
    "Status",
    "Step",
    "ExecutionSettings",
    "StatusManager",
    "StatusTracker",
    "ChainSwitchGate",
    "switch_chain",
]
