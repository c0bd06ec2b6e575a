from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from routeconv.core.cost import INFINITY
from routeconv.protocols.base import HostContext


class FakeHost(HostContext):
    """Single-node host with fixed link costs that records every effect."""

    def __init__(self, node_id: int, nodes: List[int], links: Dict[int, float]) -> None:
        self._node_id = node_id
        self._nodes = sorted(nodes)
        self.links = dict(links)
        self.sent: List[Tuple[int, object]] = []
        self.routes: Dict[int, Tuple[Optional[int], float]] = {}
        self.route_calls: List[Tuple[int, Optional[int], float]] = []

    @property
    def node_id(self) -> int:
        return self._node_id

    def nodes(self) -> List[int]:
        return list(self._nodes)

    def link_cost(self, node: int) -> float:
        if node == self._node_id:
            return 0.0
        return self.links.get(node, INFINITY)

    def send_message(self, to: int, message) -> None:
        self.sent.append((to, message))

    def set_route(self, destination: int, next_hop: Optional[int], cost: float) -> None:
        self.route_calls.append((destination, next_hop, cost))
        if next_hop is None:
            self.routes.pop(destination, None)
        else:
            self.routes[destination] = (next_hop, cost)

    def sent_to(self, node: int) -> list:
        return [msg for to, msg in self.sent if to == node]

    def reset(self) -> None:
        self.sent.clear()
        self.route_calls.clear()


@pytest.fixture
def make_host():
    def _make(node_id: int, nodes: List[int], links: Dict[int, float]) -> FakeHost:
        return FakeHost(node_id, nodes, links)

    return _make
