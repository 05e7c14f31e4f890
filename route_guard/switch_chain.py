"""
Chain-switch gate.

Before a step's transaction is sent, the wallet has to be connected to the
chain the step runs on. ``switch_chain`` checks that, asks the user to
switch through the caller's hook when allowed, verifies the result and
records every outcome on the step's SWITCH_CHAIN process.

Outcomes:
  - wallet already on the right chain -> same signer back, nothing recorded
  - user interaction not allowed      -> None, step left in ACTION_REQUIRED
  - switch confirmed                  -> new signer, process DONE, execution PENDING
  - switch failed or rejected         -> process and execution FAILED, error raised

Calls for the same step are serialized; different steps run freely.
"""

import asyncio
import inspect
import logging
import weakref
from typing import Any, Optional, Tuple

from .errors import ErrorCode, StructuredError, chain_switch_error
from .metrics import chain_switch_total
from .models import ProcessType, Route, Status, Step
from .settings import ExecutionSettings, SwitchChainHook
from .status_manager import StatusManager, StatusTracker

logger = logging.getLogger(__name__)


# keyed by (event loop, step id); an asyncio.Lock only works inside one loop
_step_locks: "weakref.WeakValueDictionary[Tuple[int, str], asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(step: Step) -> asyncio.Lock:
    key = (id(asyncio.get_running_loop()), step.id)
    lock = _step_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _step_locks[key] = lock
    return lock


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def get_chain_id(signer: Any) -> Optional[int]:
    """Chain id the signer is bound to, or None without a signer."""
    if signer is None:
        return None
    chain_id = await _resolve(signer.get_chain_id())
    if isinstance(chain_id, str):
        # wallets sometimes report hex strings ("0x89")
        return int(chain_id, 0)
    return chain_id


async def switch_chain(
    signer: Any,
    status_manager: StatusTracker,
    step: Step,
    switch_chain_hook: SwitchChainHook,
    allow_user_interaction: bool,
) -> Optional[Any]:
    """
    Make sure ``signer`` is on ``step.from_chain_id``.

    Returns the signer to use for the step, or None when the switch needs the
    user but ``allow_user_interaction`` is False. Raises the hook's own error
    if the hook fails, or a ChainSwitchError if the wallet ends up on another
    chain.
    """
    async with _lock_for(step):
        return await _switch_chain(
            signer, status_manager, step, switch_chain_hook, allow_user_interaction
        )


async def _switch_chain(
    signer: Any,
    status_manager: StatusTracker,
    step: Step,
    switch_chain_hook: SwitchChainHook,
    allow_user_interaction: bool,
) -> Optional[Any]:
    target = step.from_chain_id
    current = await get_chain_id(signer)
    if current == target:
        chain_switch_total.labels(outcome="noop").inc()
        return signer

    logger.info("step %s: wallet is on chain %s, step requires chain %s", step.id, current, target)
    status_manager.init_execution(step)
    status_manager.update_execution(step, Status.ACTION_REQUIRED)
    switch_process = status_manager.find_or_create_process(
        step, ProcessType.SWITCH_CHAIN, Status.ACTION_REQUIRED
    )

    if not allow_user_interaction:
        logger.info("step %s: chain switch to %s needs user interaction, pausing", step.id, target)
        chain_switch_total.labels(outcome="action_required").inc()
        return None

    try:
        updated_signer = await _resolve(switch_chain_hook(target))
        updated_chain_id = await get_chain_id(updated_signer)
        if updated_chain_id != target:
            raise chain_switch_error()
    except Exception as exc:
        message = exc.message if isinstance(exc, StructuredError) else (str(exc) or type(exc).__name__)
        logger.warning("step %s: chain switch to %s failed: %s", step.id, target, message)
        status_manager.update_process(
            step,
            switch_process.type,
            Status.FAILED,
            error={"code": int(ErrorCode.CHAIN_SWITCH_ERROR), "message": message},
        )
        status_manager.update_execution(step, Status.FAILED)
        chain_switch_total.labels(outcome="failed").inc()
        raise

    status_manager.update_process(step, switch_process.type, Status.DONE)
    status_manager.update_execution(step, Status.PENDING)
    chain_switch_total.labels(outcome="done").inc()
    logger.info("step %s: wallet switched to chain %s", step.id, target)
    return updated_signer


class ChainSwitchGate:
    """``switch_chain`` bound to a tracker and the route's execution settings."""

    def __init__(self, status_manager: StatusTracker, settings: Optional[ExecutionSettings] = None):
        self.status_manager = status_manager
        self.settings = settings or ExecutionSettings()

    @classmethod
    def for_route(cls, route: Route, settings: Optional[ExecutionSettings] = None) -> "ChainSwitchGate":
        """Gate over a fresh in-memory ``StatusManager`` wired to the settings' route update hook."""
        settings = settings or ExecutionSettings()
        return cls(StatusManager(route, update_route_hook=settings.update_route_hook), settings)

    async def ensure_chain(self, signer: Any, step: Step) -> Optional[Any]:
        return await switch_chain(
            signer,
            self.status_manager,
            step,
            self.settings.switch_chain_hook,
            self.settings.allow_user_interaction,
        )
