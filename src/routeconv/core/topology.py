from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from routeconv.core.cost import INFINITY, Cost, NodeId, normalize_cost


@dataclass
class Edge:
    u: NodeId
    v: NodeId
    cost: Cost


class Topology:
    """Undirected weighted graph of the simulated nodes; a missing edge is a down link."""

    def __init__(self) -> None:
        self._adj: Dict[NodeId, Dict[NodeId, Cost]] = {}

    def add_node(self, node: NodeId) -> None:
        self._adj.setdefault(int(node), {})

    def nodes(self) -> List[NodeId]:
        return sorted(self._adj.keys())

    def neighbors(self, node: NodeId) -> Dict[NodeId, Cost]:
        return dict(self._adj.get(node, {}))

    def cost(self, u: NodeId, v: NodeId) -> Optional[Cost]:
        return self._adj.get(u, {}).get(v)

    def set_link(self, u: NodeId, v: NodeId, cost: Cost) -> None:
        """Bring a link up at ``cost``, or take it down when ``cost`` is infinite."""
        u, v = int(u), int(v)
        if u == v:
            raise ValueError(f"self loop on node {u}")
        self.add_node(u)
        self.add_node(v)
        if cost >= INFINITY:
            self._adj[u].pop(v, None)
            self._adj[v].pop(u, None)
            return
        self._adj[u][v] = float(cost)
        self._adj[v][u] = float(cost)

    def add_link(self, u: NodeId, v: NodeId, cost: Cost = 1.0) -> None:
        self.set_link(u, v, float(cost))

    def edge_list(self) -> List[Edge]:
        edges: List[Edge] = []
        seen: set[Tuple[int, int]] = set()
        for u in self.nodes():
            for v, c in self._adj[u].items():
                key = (min(u, v), max(u, v))
                if key in seen:
                    continue
                seen.add(key)
                edges.append(Edge(u=key[0], v=key[1], cost=c))
        return sorted(edges, key=lambda e: (e.u, e.v))

    def without_links(self) -> "Topology":
        other = Topology()
        for n in self.nodes():
            other.add_node(n)
        return other

    @classmethod
    def from_edges(cls, edges: Iterable[Sequence[Any]], nodes: Iterable[NodeId] = ()) -> "Topology":
        t = cls()
        for n in nodes:
            t.add_node(int(n))
        for row in edges:
            u, v = int(row[0]), int(row[1])
            c = normalize_cost(row[2] if len(row) > 2 else 1.0)
            t.add_node(u)
            t.add_node(v)
            t.set_link(u, v, c)
        return t

    @classmethod
    def line(cls, n_nodes: int, cost: Cost = 1.0) -> "Topology":
        t = cls()
        for i in range(max(0, n_nodes)):
            t.add_node(i)
        for i in range(n_nodes - 1):
            t.add_link(i, i + 1, cost)
        return t

    @classmethod
    def ring(cls, n_nodes: int, cost: Cost = 1.0) -> "Topology":
        t = cls.line(n_nodes, cost)
        if n_nodes > 2:
            t.add_link(n_nodes - 1, 0, cost)
        return t

    @classmethod
    def star(cls, n_nodes: int, cost: Cost = 1.0, center: int = 0) -> "Topology":
        t = cls()
        if n_nodes <= 0:
            return t
        center = max(0, min(center, n_nodes - 1))
        for i in range(n_nodes):
            t.add_node(i)
        for i in range(n_nodes):
            if i != center:
                t.add_link(center, i, cost)
        return t

    @classmethod
    def fullmesh(cls, n_nodes: int, cost: Cost = 1.0) -> "Topology":
        t = cls()
        for i in range(max(0, n_nodes)):
            t.add_node(i)
        for u in range(n_nodes):
            for v in range(u + 1, n_nodes):
                t.add_link(u, v, cost)
        return t

    @classmethod
    def grid(cls, rows: int, cols: int, cost: Cost = 1.0) -> "Topology":
        t = cls()

        def idx(r: int, c: int) -> int:
            return r * cols + c

        for r in range(rows):
            for c in range(cols):
                u = idx(r, c)
                t.add_node(u)
                if c + 1 < cols:
                    t.add_link(u, idx(r, c + 1), cost)
                if r + 1 < rows:
                    t.add_link(u, idx(r + 1, c), cost)
        return t

    @classmethod
    def er(cls, n_nodes: int, p: float, cost: Cost = 1.0, seed: int = 0) -> "Topology":
        rng = random.Random(seed)
        t = cls()
        for n in range(n_nodes):
            t.add_node(n)
        for u in range(n_nodes):
            for v in range(u + 1, n_nodes):
                if rng.random() <= p:
                    t.add_link(u, v, cost)
        for u in range(1, n_nodes):
            if not t.neighbors(u):
                t.add_link(u, rng.randrange(0, u), cost)
        if n_nodes > 1 and not t.neighbors(0):
            t.add_link(0, rng.randrange(1, n_nodes), cost)
        return t

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], seed: int = 0) -> "Topology":
        if "edges" in cfg:
            return cls.from_edges(cfg.get("edges") or [], nodes=cfg.get("nodes") or ())
        tp = cfg.get("type", "ring")
        cost = float(cfg.get("default_cost", 1.0))
        if tp == "line":
            return cls.line(int(cfg.get("n_nodes", 8)), cost)
        if tp == "ring":
            return cls.ring(int(cfg.get("n_nodes", 8)), cost)
        if tp == "star":
            return cls.star(int(cfg.get("n_nodes", 8)), cost, int(cfg.get("center", 0)))
        if tp == "fullmesh":
            return cls.fullmesh(int(cfg.get("n_nodes", 8)), cost)
        if tp == "grid":
            return cls.grid(int(cfg.get("rows", 4)), int(cfg.get("cols", 4)), cost)
        if tp == "er":
            return cls.er(int(cfg.get("n_nodes", 20)), float(cfg.get("p", 0.1)), cost, seed=seed)
        raise ValueError(f"Unsupported topology type: {tp}")
