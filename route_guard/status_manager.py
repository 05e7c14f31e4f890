"""
Status tracking for route execution.

``StatusTracker`` is the contract the chain-switch gate (and any other step
action) writes through. ``StatusManager`` implements it in memory on top of
the route's own ``Step.execution`` records and tells subscribers about every
change as soon as it happens, so a UI can re-render the route.

Rules enforced here:
  - one Execution per step, created lazily and never replaced
  - at most one live process per type; a terminal (DONE/FAILED) record is
    superseded in place by a fresh one when its type is started again
  - DONE and FAILED processes never change status
  - an Execution is FAILED only if one of its processes is FAILED; dropping
    or superseding the last FAILED process moves the Execution back to PENDING
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Union
import logging

from .errors import StructuredError, validation_error
from .models import (
    Execution,
    Process,
    ProcessError,
    ProcessType,
    Route,
    Status,
    Step,
)

logger = logging.getLogger(__name__)


RouteCallback = Callable[[Route], Any]
ErrorDetails = Union[ProcessError, StructuredError, Dict[str, Any]]


PROCESS_MESSAGES: Dict[ProcessType, Dict[Status, str]] = {
    ProcessType.TOKEN_ALLOWANCE: {
        Status.PENDING: "Waiting for token allowance.",
        Status.ACTION_REQUIRED: "Please approve the token allowance.",
        Status.DONE: "Token allowance set.",
    },
    ProcessType.SWITCH_CHAIN: {
        Status.ACTION_REQUIRED: "Chain switch required.",
        Status.DONE: "Chain switched successfully.",
    },
    ProcessType.SWAP: {
        Status.PENDING: "Waiting for swap transaction.",
        Status.ACTION_REQUIRED: "Please sign the transaction.",
        Status.DONE: "Swap completed.",
    },
    ProcessType.CROSS_CHAIN: {
        Status.PENDING: "Waiting for bridge transaction.",
        Status.ACTION_REQUIRED: "Please sign the transaction.",
        Status.DONE: "Bridge transaction confirmed.",
    },
    ProcessType.RECEIVING_CHAIN: {
        Status.PENDING: "Waiting for destination chain.",
        Status.DONE: "Bridge completed.",
    },
}

# fields update_process may set besides status and error
_UPDATABLE_FIELDS = frozenset({"message", "tx_hash", "tx_link"})


def get_process_message(process_type: ProcessType, status: Status) -> Optional[str]:
    return PROCESS_MESSAGES.get(process_type, {}).get(status)


class StatusTracker(Protocol):
    """Operations the chain-switch gate needs. All are synchronous."""

    def init_execution(self, step: Step) -> Execution:
        ...

    def update_execution(self, step: Step, status: Status) -> Step:
        ...

    def find_or_create_process(
        self, step: Step, process_type: ProcessType, status: Status = Status.PENDING
    ) -> Process:
        ...

    def update_process(
        self,
        step: Step,
        process_type: ProcessType,
        status: Status,
        error: Optional[ErrorDetails] = None,
        **params: Any,
    ) -> Process:
        ...


def _to_process_error(error: ErrorDetails) -> ProcessError:
    if isinstance(error, ProcessError):
        return error
    if isinstance(error, StructuredError):
        return ProcessError(code=int(error.code), message=error.message, html_message=error.html_message)
    return ProcessError.model_validate(error)


class StatusManager:
    """
    In-memory ``StatusTracker`` for a single route.

    If a caller passes a copy of one of the route's steps, the copy replaces
    the route's own step (matched by id) on the first write, so subscribers
    always see the record that was written to.
    """

    def __init__(self, route: Route, update_route_hook: Optional[RouteCallback] = None):
        self.route = route
        self._update_route_hook = update_route_hook
        self._subscribers: List[RouteCallback] = []

    def subscribe(self, callback: RouteCallback) -> Callable[[], None]:
        """Register ``callback`` for route updates. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # executions
    # ------------------------------------------------------------------

    def init_execution(self, step: Step) -> Execution:
        if step.execution is None:
            step.execution = Execution(status=Status.PENDING)
            logger.debug("initialized execution for step %s", step.id)
            self._publish(step)
        return step.execution

    def update_execution(self, step: Step, status: Status) -> Step:
        execution = self._require_execution(step)
        status = Status(status)
        if status == Status.FAILED and not any(p.status == Status.FAILED for p in execution.process):
            raise validation_error(
                f"Execution of step {step.id} cannot fail without a failed process."
            )
        if execution.status != status:
            logger.debug("step %s execution %s -> %s", step.id, execution.status.value, status.value)
        execution.status = status
        self._publish(step)
        return step

    # ------------------------------------------------------------------
    # processes
    # ------------------------------------------------------------------

    def find_or_create_process(
        self, step: Step, process_type: ProcessType, status: Status = Status.PENDING
    ) -> Process:
        execution = self._require_execution(step)
        process_type = ProcessType(process_type)
        existing = execution.find_process(process_type)
        if existing is not None and not existing.is_terminal:
            return existing

        status = Status(status)
        process = Process(
            type=process_type,
            status=status,
            message=get_process_message(process_type, status),
        )
        if existing is None:
            execution.process.append(process)
        else:
            idx = execution.process.index(existing)
            execution.process[idx] = process
            logger.debug(
                "step %s: superseded %s process in state %s",
                step.id, process_type.value, existing.status.value,
            )
        self._settle_failed_execution(step, execution)
        self._publish(step)
        return process

    def update_process(
        self,
        step: Step,
        process_type: ProcessType,
        status: Status,
        error: Optional[ErrorDetails] = None,
        **params: Any,
    ) -> Process:
        execution = self._require_execution(step)
        process = execution.find_process(ProcessType(process_type))
        if process is None:
            raise validation_error(f"Can't find a {process_type} process for step {step.id}.")
        if process.is_terminal:
            raise validation_error(
                f"Process {process.type.value} of step {step.id} is already {process.status.value}."
            )
        unknown = set(params) - _UPDATABLE_FIELDS
        if unknown:
            raise validation_error(f"Unknown process fields: {', '.join(sorted(unknown))}")

        status = Status(status)
        process.status = status
        message = get_process_message(process.type, status)
        if message:
            process.message = message
        now = datetime.now(timezone.utc)
        if status == Status.DONE:
            process.done_at = now
        elif status == Status.FAILED:
            process.failed_at = now
        if error is not None:
            process.error = _to_process_error(error)
            process.message = process.error.message
        for key, value in params.items():
            setattr(process, key, value)

        self._publish(step)
        return process

    def remove_process(self, step: Step, process_type: ProcessType) -> None:
        execution = self._require_execution(step)
        process = execution.find_process(ProcessType(process_type))
        if process is None:
            return
        execution.process.remove(process)
        self._settle_failed_execution(step, execution)
        self._publish(step)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _require_execution(self, step: Step) -> Execution:
        if step.execution is None:
            raise validation_error(f"Execution of step {step.id} hasn't been initialized.")
        return step.execution

    def _settle_failed_execution(self, step: Step, execution: Execution) -> None:
        if execution.status != Status.FAILED:
            return
        if any(p.status == Status.FAILED for p in execution.process):
            return
        logger.debug("step %s: no failed process left, execution FAILED -> PENDING", step.id)
        execution.status = Status.PENDING

    def _publish(self, step: Step) -> None:
        # callers may hand us a copy of the step; keep the route pointing at it
        for idx, s in enumerate(self.route.steps):
            if s.id == step.id and s is not step:
                self.route.steps[idx] = step
                break

        callbacks = list(self._subscribers)
        if self._update_route_hook is not None:
            callbacks.insert(0, self._update_route_hook)
        for cb in callbacks:
            try:
                cb(self.route)
            except Exception:
                logger.exception("route update hook failed for step %s", step.id)
