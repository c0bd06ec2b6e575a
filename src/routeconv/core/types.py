from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from routeconv.core.cost import NodeId


@dataclass(frozen=True)
class Message:
    tick_created: int
    src: NodeId
    dst: NodeId
    payload: bytes
    seq: int = 0

    def sort_key(self) -> tuple[int, int]:
        return (self.tick_created, self.seq)


@dataclass(frozen=True)
class ExternalEvent:
    tick: int
    action: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunResult:
    converged_tick: Optional[int]
    route_hashes: List[str]
    route_tables: Dict[NodeId, Dict[NodeId, list]]
    delivered_messages: int
    events_applied: int
    route_flaps: int
    quiescent: bool
