"""
Route data model.

Routes arrive from the route API as camelCase JSON and are validated with
pydantic on the way in. ``Step.execution`` is the only part of a route this
package writes to; everything else is read-only context.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Status(str, Enum):
    """Status shared by executions and processes."""
    PENDING = "PENDING"
    ACTION_REQUIRED = "ACTION_REQUIRED"
    DONE = "DONE"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({Status.DONE, Status.FAILED})


class ProcessType(str, Enum):
    TOKEN_ALLOWANCE = "TOKEN_ALLOWANCE"
    SWITCH_CHAIN = "SWITCH_CHAIN"
    SWAP = "SWAP"
    CROSS_CHAIN = "CROSS_CHAIN"
    RECEIVING_CHAIN = "RECEIVING_CHAIN"


class StepType(str, Enum):
    SWAP = "swap"
    CROSS = "cross"
    LIFI = "lifi"
    CUSTOM = "custom"
    PROTOCOL = "protocol"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ProcessError(_Model):
    """Error details attached to a failed process."""
    code: int
    message: str
    html_message: Optional[str] = None


class Process(_Model):
    type: ProcessType
    status: Status
    message: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    done_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    tx_hash: Optional[str] = None
    tx_link: Optional[str] = None
    error: Optional[ProcessError] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Execution(_Model):
    status: Status = Status.PENDING
    process: List[Process] = Field(default_factory=list)

    def find_process(self, process_type: ProcessType) -> Optional[Process]:
        for p in self.process:
            if p.type == process_type:
                return p
        return None


class Token(_Model):
    address: str
    chain_id: int
    symbol: str
    decimals: int
    name: Optional[str] = None


class Action(_Model):
    from_chain_id: int
    to_chain_id: int
    from_token: Optional[Token] = None
    to_token: Optional[Token] = None
    from_amount: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    slippage: Optional[float] = None


class Step(_Model):
    id: str
    type: StepType = StepType.LIFI
    tool: str = ""
    action: Action
    execution: Optional[Execution] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def from_chain_id(self) -> int:
        """Chain the step's transaction has to be sent on."""
        return self.action.from_chain_id


class Route(_Model):
    id: str
    from_chain_id: int
    to_chain_id: int
    steps: List[Step] = Field(default_factory=list)

    def find_step(self, step_id: str) -> Optional[Step]:
        for s in self.steps:
            if s.id == step_id:
                return s
        return None
