from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from routeconv.core.cost import INFINITY, Cost, NodeId, normalize_cost
from routeconv.core.topology import Topology
from routeconv.core.types import ExternalEvent, Message
from routeconv.model.messages import RoutingMessage, encode_message
from routeconv.model.routing import RouteTable
from routeconv.protocols.base import HostContext
from routeconv.protocols.registry import load_protocol

_log = logging.getLogger(__name__)


@dataclass
class Router:
    node_id: NodeId
    state: Any
    routes: RouteTable


class NodeContext(HostContext):
    def __init__(self, runtime: "RouterRuntime", node_id: NodeId, tick: int) -> None:
        self._runtime = runtime
        self._node_id = node_id
        self.tick = tick

    @property
    def node_id(self) -> NodeId:
        return self._node_id

    def nodes(self) -> List[NodeId]:
        return list(self._runtime.node_ids)

    def link_cost(self, node: NodeId) -> Cost:
        if node == self._node_id:
            return 0.0
        cost = self._runtime.topology.cost(self._node_id, node)
        return INFINITY if cost is None else cost

    def send_message(self, to: NodeId, message: RoutingMessage) -> None:
        self._runtime.enqueue(
            Message(
                tick_created=self.tick,
                src=self._node_id,
                dst=int(to),
                payload=encode_message(message),
                seq=self._runtime.next_seq(),
            )
        )

    def set_route(self, destination: NodeId, next_hop: Optional[NodeId], cost: Cost) -> None:
        self._runtime._install_route(self._node_id, destination, next_hop, cost)


class RouterRuntime:
    """Host side of the simulation: owns every node's state handle and route table."""

    def __init__(
        self,
        topology: Topology,
        protocol_name: str,
        protocol_config: Optional[dict] = None,
    ) -> None:
        self.initial_topology = topology
        self.topology = topology.without_links()
        self.node_ids: List[NodeId] = self.topology.nodes()
        self.protocol = load_protocol(protocol_name)(config=protocol_config)
        self.routers: Dict[NodeId, Router] = {}
        self._outbound: List[Message] = []
        self.route_flaps = 0
        self._seq = 0

    @property
    def route_tables(self) -> Dict[NodeId, Dict[NodeId, list]]:
        return {n: r.routes.as_dict() for n, r in sorted(self.routers.items())}

    def next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def context(self, node: NodeId, tick: int) -> NodeContext:
        return NodeContext(self, node, tick)

    def bootstrap(self) -> None:
        for node in self.node_ids:
            state = self.protocol.init_state(self.context(node, 0))
            self.routers[node] = Router(node_id=node, state=state, routes=RouteTable(self.protocol.name))
        for edge in self.initial_topology.edge_list():
            self.set_link(0, edge.u, edge.v, edge.cost)

    def set_link(self, tick: int, u: NodeId, v: NodeId, cost: Cost) -> None:
        self.topology.set_link(u, v, cost)
        for node, neighbor in sorted([(u, v), (v, u)]):
            router = self.routers.get(node)
            if router is None:
                continue
            self.protocol.on_link_change(self.context(node, tick), router.state, neighbor, cost)

    def handle_event(self, tick: int, event: ExternalEvent) -> None:
        action = event.action
        p = event.params
        u, v = int(p["u"]), int(p["v"])
        if u not in self.routers or v not in self.routers:
            raise ValueError(f"Event {action} references unknown node: {u}-{v}")
        if action == "remove_link":
            self.set_link(tick, u, v, INFINITY)
            return
        if action == "add_link":
            self.set_link(tick, u, v, normalize_cost(p.get("metric", 1.0)))
            return
        if action in {"set_link", "update_metric"}:
            if "metric" not in p:
                raise ValueError(f"Event {action} {u}-{v} requires a metric")
            self.set_link(tick, u, v, normalize_cost(p["metric"]))
            return
        raise ValueError(f"Unsupported event action: {action}")

    def enqueue(self, msg: Message) -> None:
        self._outbound.append(msg)

    def process_tick(self, tick: int, incoming: List[Message]) -> None:
        for msg in incoming:
            router = self.routers.get(msg.dst)
            if router is None:
                _log.debug("drop message for unknown node %s", msg.dst)
                continue
            self.protocol.on_receive(self.context(msg.dst, tick), router.state, msg.src, msg.payload)

    def consume_outbound(self) -> List[Message]:
        out = self._outbound
        self._outbound = []
        return out

    def _install_route(self, node: NodeId, dst: NodeId, next_hop: Optional[NodeId], cost: Cost) -> None:
        if self.routers[node].routes.install(dst, next_hop, cost):
            self.route_flaps += 1
            _log.debug("node %s: route %s -> %s (%s)", node, dst, next_hop, cost)
