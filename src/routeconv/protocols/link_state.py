from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from routeconv.core.cost import INFINITY, Cost, NodeId, cost_add, normalize_cost
from routeconv.model.messages import LinkStateEntry, LinkStateMessage
from routeconv.protocols.base import HostContext, RoutingProtocol, live_neighbors

_log = logging.getLogger(__name__)


@dataclass
class LsState:
    node_id: NodeId
    link_states: Dict[NodeId, LinkStateEntry] = field(default_factory=dict)
    routes: Dict[NodeId, Tuple[Optional[NodeId], Cost]] = field(default_factory=dict)

    def version_of(self, owner: NodeId) -> int:
        entry = self.link_states.get(owner)
        return -1 if entry is None else entry.version


class LinkStateProtocol(RoutingProtocol[LsState]):
    """Versioned flooding of every node's link costs, routes from Dijkstra."""

    name = "ls"
    message_type = LinkStateMessage

    def init_state(self, ctx: HostContext) -> LsState:
        me = ctx.node_id
        nodes = ctx.nodes()
        state = LsState(node_id=me)
        for owner in nodes:
            if owner == me:
                costs = {dst: 0.0 if dst == me else normalize_cost(ctx.link_cost(dst)) for dst in nodes}
            else:
                costs = {dst: 0.0 if dst == owner else INFINITY for dst in nodes}
            state.link_states[owner] = LinkStateEntry(costs=costs, version=0)
        return state

    def on_link_change(self, ctx: HostContext, state: LsState, neighbor: NodeId, new_cost: Cost) -> bool:
        me = ctx.node_id
        own = state.link_states[me]
        costs = dict(own.costs)
        costs[int(neighbor)] = normalize_cost(new_cost)
        state.link_states[me] = LinkStateEntry(costs=costs, version=own.version + 1)
        _log.debug("node %s: link to %s is %s, own version now %d", me, neighbor, new_cost, own.version + 1)

        changed = self.run_dijkstra(ctx, state)
        self.broadcast(ctx, state)
        return changed

    def on_message(
        self,
        ctx: HostContext,
        state: LsState,
        sender: NodeId,
        message: LinkStateMessage,
    ) -> bool:
        me = ctx.node_id
        updated = False
        for owner, entry in message.entries.items():
            if owner == me:
                continue
            if entry.version <= state.version_of(owner):
                continue
            _log.debug(
                "node %s: newer state for %s from %s (version %d > %d)",
                me,
                owner,
                sender,
                entry.version,
                state.version_of(owner),
            )
            state.link_states[owner] = LinkStateEntry(costs=dict(entry.costs), version=entry.version)
            updated = True

        if not updated:
            return False
        changed = self.run_dijkstra(ctx, state)
        self.broadcast(ctx, state)
        return changed

    def run_dijkstra(self, ctx: HostContext, state: LsState) -> bool:
        me = ctx.node_id
        nodes = ctx.nodes()
        order = {n: i for i, n in enumerate(nodes)}

        dist: Dict[NodeId, Cost] = {n: INFINITY for n in nodes}
        dist[me] = 0.0
        pred: Dict[NodeId, NodeId] = {}
        visited: set[NodeId] = set()
        pq: List[Tuple[Cost, int, NodeId]] = [(0.0, order[me], me)]

        while pq:
            dist_u, _, u = heapq.heappop(pq)
            if u in visited:
                continue
            visited.add(u)
            for v in nodes:
                if v == u or v in visited:
                    continue
                weight = self._edge_cost(ctx, state, u, v)
                if weight >= INFINITY:
                    continue
                alt = cost_add(dist_u, weight)
                if alt < dist[v]:
                    dist[v] = alt
                    pred[v] = u
                    heapq.heappush(pq, (alt, order[v], v))

        changed = False
        for dst in nodes:
            if dst == me:
                continue
            next_hop = self._first_hop(me, dst, pred) if dist[dst] < INFINITY else None
            route = (next_hop, dist[dst] if next_hop is not None else INFINITY)
            if state.routes.get(dst) == route:
                continue
            _log.debug("node %s: route to %s is now %s via %s", me, dst, route[1], route[0])
            state.routes[dst] = route
            ctx.set_route(dst, route[0], route[1])
            changed = True
        return changed

    def broadcast(self, ctx: HostContext, state: LsState) -> None:
        database = dict(state.link_states)
        for nbr in live_neighbors(ctx):
            _log.debug("node %s: flooding link-state database to %s", ctx.node_id, nbr)
            ctx.send_message(nbr, LinkStateMessage(entries=database))

    @staticmethod
    def _edge_cost(ctx: HostContext, state: LsState, u: NodeId, v: NodeId) -> Cost:
        if u == ctx.node_id:
            return ctx.link_cost(v)
        entry = state.link_states.get(u)
        if entry is None:
            return INFINITY
        return entry.costs.get(v, INFINITY)

    @staticmethod
    def _first_hop(me: NodeId, dst: NodeId, pred: Dict[NodeId, NodeId]) -> Optional[NodeId]:
        current = dst
        while True:
            parent = pred.get(current)
            if parent is None:
                return None
            if parent == me:
                return current
            current = parent
