from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from routeconv.core.cost import INFINITY, Cost, NodeId, cost_add, normalize_cost
from routeconv.model.messages import DistanceVectorMessage
from routeconv.protocols.base import HostContext, RoutingProtocol, live_neighbors

_log = logging.getLogger(__name__)

DEFAULT_INFINITY_METRIC = 16.0


@dataclass
class DvState:
    node_id: NodeId
    distance: Dict[NodeId, Cost] = field(default_factory=dict)
    neighbor_cost: Dict[NodeId, Dict[NodeId, Cost]] = field(default_factory=dict)
    next_hop: Dict[NodeId, Optional[NodeId]] = field(default_factory=dict)

    def advertised(self, neighbor: NodeId, dst: NodeId) -> Cost:
        vector = self.neighbor_cost.get(neighbor)
        if vector is None:
            return 0.0 if neighbor == dst else INFINITY
        return vector.get(dst, INFINITY)


class DistanceVectorProtocol(RoutingProtocol[DvState]):
    """Bellman-Ford distance vector with reverse path poisoning."""

    name = "dv"
    message_type = DistanceVectorMessage

    def __init__(self, config: dict | None = None) -> None:
        super().__init__(config)
        self.poison_reverse = bool(self.config.get("poison_reverse", True))
        # None lifts the bound; count-to-infinity then only stops on acyclic partitions.
        raw_limit = self.config.get("infinity_metric", DEFAULT_INFINITY_METRIC)
        self.infinity_metric = INFINITY if raw_limit is None else float(raw_limit)

    def init_state(self, ctx: HostContext) -> DvState:
        me = ctx.node_id
        nodes = ctx.nodes()
        state = DvState(node_id=me)
        for i in nodes:
            state.distance[i] = INFINITY
            state.next_hop[i] = None
            state.neighbor_cost[i] = {j: 0.0 if i == j else INFINITY for j in nodes}
        state.distance[me] = 0.0
        _log.debug("node %s: initialized distance vector over %d nodes", me, len(nodes))
        return state

    def on_link_change(self, ctx: HostContext, state: DvState, neighbor: NodeId, new_cost: Cost) -> bool:
        _log.debug("node %s: link to %s changed to %s", ctx.node_id, neighbor, new_cost)
        if not self.recompute(ctx, state):
            return False
        self.broadcast(ctx, state)
        return True

    def on_message(
        self,
        ctx: HostContext,
        state: DvState,
        sender: NodeId,
        message: DistanceVectorMessage,
    ) -> bool:
        state.neighbor_cost[sender] = {
            int(dst): normalize_cost(cost, self.infinity_metric) for dst, cost in message.costs.items()
        }
        if not self.recompute(ctx, state):
            return False
        self.broadcast(ctx, state)
        return True

    def recompute(self, ctx: HostContext, state: DvState) -> bool:
        me = ctx.node_id
        nodes = ctx.nodes()
        changed = False

        for dst in nodes:
            if dst == me:
                continue
            best_cost = normalize_cost(ctx.link_cost(dst), self.infinity_metric)
            best_hop: Optional[NodeId] = dst if best_cost < INFINITY else None

            for nbr in nodes:
                if nbr == me:
                    continue
                via = cost_add(ctx.link_cost(nbr), state.advertised(nbr, dst), self.infinity_metric)
                if via < best_cost:
                    best_cost = via
                    best_hop = nbr

            if best_cost == state.distance.get(dst, INFINITY) and best_hop == state.next_hop.get(dst):
                continue
            _log.debug("node %s: route to %s is now %s via %s", me, dst, best_cost, best_hop)
            state.distance[dst] = best_cost
            state.next_hop[dst] = best_hop
            ctx.set_route(dst, best_hop, best_cost)
            changed = True

        return changed

    def broadcast(self, ctx: HostContext, state: DvState) -> None:
        for nbr in live_neighbors(ctx):
            costs = dict(state.distance)
            if self.poison_reverse:
                for dst, hop in state.next_hop.items():
                    if hop == nbr:
                        costs[dst] = INFINITY
            _log.debug("node %s: sending distance vector to %s", ctx.node_id, nbr)
            ctx.send_message(nbr, DistanceVectorMessage(costs=costs))
