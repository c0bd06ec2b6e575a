from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from routeconv.core.cost import INFINITY, Cost, NodeId, cost_add, normalize_cost
from routeconv.model.messages import PathVectorMessage, RouteAdvertisement
from routeconv.protocols.base import HostContext, RoutingProtocol, live_neighbors

_log = logging.getLogger(__name__)

Path = Tuple[NodeId, ...]


@dataclass
class PvState:
    """Per-neighbor advertised costs and paths.

    The row for the node itself holds its chosen routes; every chosen path
    starts with the node and ends with the destination.
    """

    node_id: NodeId
    neighbor_cost: Dict[NodeId, Dict[NodeId, Cost]] = field(default_factory=dict)
    paths: Dict[NodeId, Dict[NodeId, Path]] = field(default_factory=dict)

    def cost(self, via: NodeId, dst: NodeId) -> Cost:
        row = self.neighbor_cost.get(via)
        if row is None:
            return 0.0 if via == dst else INFINITY
        return row.get(dst, INFINITY)

    def path(self, via: NodeId, dst: NodeId) -> Path:
        row = self.paths.get(via)
        if row is None:
            return (via,) if via == dst else ()
        return row.get(dst, ())

    def next_hop(self, dst: NodeId) -> Optional[NodeId]:
        chosen = self.path(self.node_id, dst)
        return chosen[1] if len(chosen) > 1 else None


class PathVectorProtocol(RoutingProtocol[PvState]):
    """Path vector: routes carry their full node path, paths through this node are rejected."""

    name = "pv"
    message_type = PathVectorMessage

    def init_state(self, ctx: HostContext) -> PvState:
        me = ctx.node_id
        state = PvState(node_id=me)
        for n in ctx.nodes():
            state.neighbor_cost[n] = {n: 0.0}
            state.paths[n] = {n: (n,)}
        return state

    def on_link_change(self, ctx: HostContext, state: PvState, neighbor: NodeId, new_cost: Cost) -> bool:
        _log.debug("node %s: link to %s changed to %s", ctx.node_id, neighbor, new_cost)
        withdrawn = False
        if new_cost >= INFINITY:
            withdrawn = self.invalidate_route(ctx, state, neighbor)
        changed = self.recompute(ctx, state) or withdrawn
        if changed:
            self.broadcast(ctx, state)
        return changed

    def on_message(
        self,
        ctx: HostContext,
        state: PvState,
        sender: NodeId,
        message: PathVectorMessage,
    ) -> bool:
        costs: Dict[NodeId, Cost] = {}
        paths: Dict[NodeId, Path] = {}
        for dst, adv in message.routes.items():
            costs[int(dst)] = normalize_cost(adv.cost)
            paths[int(dst)] = tuple(int(n) for n in adv.path)
        state.neighbor_cost[sender] = costs
        state.paths[sender] = paths

        changed = self.recompute(ctx, state)
        if changed:
            self.broadcast(ctx, state)
        return changed

    def recompute(self, ctx: HostContext, state: PvState) -> bool:
        me = ctx.node_id
        nodes = ctx.nodes()
        own_costs = state.neighbor_cost.setdefault(me, {me: 0.0})
        own_paths = state.paths.setdefault(me, {me: (me,)})
        changed = False

        for dst in nodes:
            if dst == me:
                continue
            best_cost = INFINITY
            best_hop: Optional[NodeId] = None
            best_path: Path = ()

            for nbr in nodes:
                link = ctx.link_cost(nbr)
                if nbr == me or link >= INFINITY:
                    continue
                advertised = state.path(nbr, dst)
                if me in advertised:
                    continue
                via = cost_add(link, state.cost(nbr, dst))
                if via < best_cost:
                    best_cost = via
                    best_hop = nbr
                    best_path = (me,) + advertised

            if best_cost == own_costs.get(dst, INFINITY) and best_path == own_paths.get(dst, ()):
                continue
            _log.debug("node %s: path to %s is now %s (cost %s)", me, dst, list(best_path), best_cost)
            own_costs[dst] = best_cost
            own_paths[dst] = best_path
            ctx.set_route(dst, best_hop, best_cost)
            changed = True

        return changed

    def invalidate_route(self, ctx: HostContext, state: PvState, neighbor: NodeId) -> bool:
        """Withdraw every chosen route whose first hop is ``neighbor``."""
        me = ctx.node_id
        own_costs = state.neighbor_cost.setdefault(me, {me: 0.0})
        own_paths = state.paths.setdefault(me, {me: (me,)})
        withdrawn = False
        for dst in ctx.nodes():
            if dst == me or state.next_hop(dst) != neighbor:
                continue
            _log.debug("node %s: invalidating path to %s via %s", me, dst, neighbor)
            own_costs[dst] = INFINITY
            own_paths[dst] = ()
            ctx.set_route(dst, None, INFINITY)
            withdrawn = True
        return withdrawn

    def broadcast(self, ctx: HostContext, state: PvState) -> None:
        me = ctx.node_id
        routes = {
            dst: RouteAdvertisement(cost=state.cost(me, dst), path=state.path(me, dst))
            for dst in ctx.nodes()
        }
        for nbr in live_neighbors(ctx):
            _log.debug("node %s: sending path vector to %s", me, nbr)
            ctx.send_message(nbr, PathVectorMessage(routes=routes))
