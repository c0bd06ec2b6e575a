from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from routeconv.core.cost import INFINITY, Cost, NodeId


@dataclass(frozen=True)
class Route:
    destination: NodeId
    next_hop: NodeId
    metric: Cost
    protocol: str


class RouteTable:
    """Forwarding entries installed by a single node's engine."""

    def __init__(self, protocol: str) -> None:
        self.protocol = protocol
        self._routes: Dict[NodeId, Route] = {}

    def install(self, destination: NodeId, next_hop: Optional[NodeId], metric: Cost) -> bool:
        dst = int(destination)
        if next_hop is None or metric >= INFINITY:
            return self._routes.pop(dst, None) is not None
        route = Route(destination=dst, next_hop=int(next_hop), metric=float(metric), protocol=self.protocol)
        if self._routes.get(dst) == route:
            return False
        self._routes[dst] = route
        return True

    def snapshot(self) -> List[Route]:
        return sorted(self._routes.values(), key=lambda r: r.destination)

    def as_dict(self) -> Dict[NodeId, list]:
        return {r.destination: [r.next_hop, r.metric] for r in self.snapshot()}
