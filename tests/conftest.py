import sys
import os

import pytest

# Ensure repository root is on sys.path for package imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from route_guard.models import Route  # noqa: E402
from route_guard.status_manager import StatusManager  # noqa: E402


ROUTE_JSON = {
    "id": "route-1",
    "fromChainId": 137,
    "toChainId": 10,
    "steps": [
        {
            "id": "step-1",
            "type": "lifi",
            "tool": "hop",
            "action": {
                "fromChainId": 137,
                "toChainId": 1,
                "fromToken": {
                    "address": "0x2791bca1f2de4661ed88a30c99a7a9449aa84174",
                    "chainId": 137,
                    "symbol": "USDC",
                    "decimals": 6,
                },
                "fromAmount": "1500000",
            },
        },
        {
            "id": "step-2",
            "type": "cross",
            "tool": "stargate",
            "action": {"fromChainId": 1, "toChainId": 10},
        },
    ],
}


class FakeSigner:
    """Wallet session stub reporting a fixed chain id."""

    def __init__(self, chain_id, sync=False):
        self.chain_id = chain_id
        self.sync = sync
        self.calls = 0

    def get_chain_id(self):
        self.calls += 1
        if self.sync:
            return self.chain_id

        async def _get():
            return self.chain_id
        return _get()


@pytest.fixture
def make_signer():
    return FakeSigner


@pytest.fixture
def route():
    return Route.model_validate(ROUTE_JSON)


@pytest.fixture
def step(route):
    return route.steps[0]


@pytest.fixture
def route_updates():
    return []


@pytest.fixture
def status_manager(route, route_updates):
    return StatusManager(route, update_route_hook=route_updates.append)


@pytest.fixture(autouse=True)
def repo_root():
    return ROOT
