"""Per-route execution settings supplied by the caller."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from .config import get_settings
from .models import Route


SwitchChainHook = Callable[[int], Union[Any, Awaitable[Any]]]
UpdateRouteHook = Callable[[Route], Any]


async def default_switch_chain_hook(chain_id: int) -> None:
    # no wallet UI attached: nobody can switch the chain for us
    return None


def _default_background() -> bool:
    return get_settings().EXECUTE_IN_BACKGROUND


@dataclass
class ExecutionSettings:
    switch_chain_hook: SwitchChainHook = default_switch_chain_hook
    update_route_hook: Optional[UpdateRouteHook] = None
    # background execution must not prompt the user
    execute_in_background: bool = field(default_factory=_default_background)

    @property
    def allow_user_interaction(self) -> bool:
        return not self.execute_in_background
