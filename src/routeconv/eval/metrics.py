from __future__ import annotations

from typing import Any, Dict, List, Optional


def compute_metrics(run: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten one ``result.json`` into convergence figures.

    A pair (node, destination) is reachable when the node ended the run with
    an installed route to it. Message cost is normalised per topology change,
    counting the tick-0 bring-up as one change.
    """
    tables = run.get("route_tables") or {}
    n_nodes = len(tables)
    costs = [float(entry[1]) for routes in tables.values() for entry in routes.values()]
    events = int(run.get("events_applied") or 0)
    delivered = int(run.get("delivered_messages") or 0)
    return {
        "run_id": run.get("run_id"),
        "name": run.get("name"),
        "protocol": run.get("protocol"),
        "seed": run.get("seed"),
        "converged_tick": run.get("converged_tick"),
        "quiescent": run.get("quiescent"),
        "events_applied": events,
        "delivered_messages": delivered,
        "messages_per_change": round(delivered / (events + 1), 3),
        "route_flaps": int(run.get("route_flaps") or 0),
        "reachable_pairs": len(costs),
        "unreachable_pairs": n_nodes * (n_nodes - 1) - len(costs),
        "mean_route_cost": round(sum(costs) / len(costs), 3) if costs else None,
        "last_route_change_tick": last_change_tick(run.get("route_hashes") or []),
    }


def last_change_tick(hashes: List[str]) -> Optional[int]:
    if not hashes:
        return None
    last = 0
    for tick in range(1, len(hashes)):
        if hashes[tick] != hashes[tick - 1]:
            last = tick
    return last
