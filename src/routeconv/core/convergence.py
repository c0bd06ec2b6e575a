from __future__ import annotations

import hashlib
import json
from typing import Dict, Optional

RouteTables = Dict[int, Dict[int, list]]


def hash_routes(route_tables: RouteTables) -> str:
    normalized: dict[str, dict[str, list]] = {}
    for node, routes in sorted(route_tables.items()):
        normalized[str(node)] = {}
        for dst, (next_hop, metric) in sorted(routes.items()):
            normalized[str(node)][str(dst)] = [int(next_hop), float(metric)]
    payload = json.dumps(normalized, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ConvergenceTracker:
    """Reports the tick at which route tables last settled for ``stable_window`` ticks."""

    def __init__(self, stable_window: int = 5) -> None:
        self.stable_window = max(1, int(stable_window))
        self._last_hash: Optional[str] = None
        self._same_count = 0
        self._changed_tick: Optional[int] = None
        self.converged_tick: Optional[int] = None

    def observe(self, tick: int, route_tables: RouteTables) -> bool:
        current = hash_routes(route_tables)
        if current == self._last_hash:
            self._same_count += 1
        else:
            self._same_count = 1
            self._last_hash = current
            self._changed_tick = tick
            self.converged_tick = None
        if self.converged_tick is None and self._same_count >= self.stable_window:
            self.converged_tick = self._changed_tick
            return True
        return False
