from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from routeconv.core.types import ExternalEvent
from routeconv.protocols.registry import available_protocols
from routeconv.utils.io import deep_merge, load_yaml

EVENT_ACTIONS = {"set_link", "add_link", "remove_link", "update_metric"}
METRIC_ACTIONS = {"set_link", "update_metric"}

DEFAULTS: Dict[str, Any] = {
    "name": "run",
    "seed": 42,
    "protocol": "dv",
    "protocol_params": {},
    "topology": {"type": "ring", "n_nodes": 4, "default_cost": 1.0},
    "network": {"base_delay": 1, "jitter": 0},
    "engine": {"max_ticks": 80, "convergence_window": 5},
    "events": [],
    "output_dir": "results/runs",
}


@dataclass(frozen=True)
class NetworkConfig:
    base_delay: int = 1
    jitter: int = 0


@dataclass(frozen=True)
class EngineConfig:
    max_ticks: int = 80
    convergence_window: int = 5


@dataclass(frozen=True)
class ScenarioConfig:
    name: str
    seed: int
    protocol: str
    protocol_params: Dict[str, Any]
    topology: Dict[str, Any]
    network: NetworkConfig
    engine: EngineConfig
    events: List[ExternalEvent] = field(default_factory=list)
    output_dir: str = "results/runs"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ScenarioConfig":
        merged = deep_merge(DEFAULTS, dict(raw))
        errors = validate_config(merged)
        if errors:
            raise ValueError("Invalid scenario config: " + "; ".join(errors))

        protocol = str(merged["protocol"]).lower()
        params_all = dict(merged.get("protocol_params") or {})
        # Params may be given flat or keyed by protocol name.
        protocol_params = dict(params_all.get(protocol, params_all))
        for name in available_protocols():
            protocol_params.pop(name, None)

        network = dict(merged["network"])
        engine = dict(merged["engine"])
        return cls(
            name=str(merged["name"]),
            seed=int(merged["seed"]),
            protocol=protocol,
            protocol_params=protocol_params,
            topology=dict(merged["topology"]),
            network=NetworkConfig(
                base_delay=int(network.get("base_delay", 1)),
                jitter=int(network.get("jitter", 0)),
            ),
            engine=EngineConfig(
                max_ticks=int(engine.get("max_ticks", 80)),
                convergence_window=int(engine.get("convergence_window", 5)),
            ),
            events=parse_events(merged.get("events") or []),
            output_dir=str(merged["output_dir"]),
        )


def load_scenario_config(path: str | Path) -> ScenarioConfig:
    return ScenarioConfig.from_dict(load_yaml(path))


def parse_events(rows: List[Mapping[str, Any]]) -> List[ExternalEvent]:
    events = []
    for row in rows:
        tick = int(row["tick"])
        action = str(row["action"])
        params = {k: v for k, v in row.items() if k not in {"tick", "action"}}
        events.append(ExternalEvent(tick=tick, action=action, params=params))
    return sorted(events, key=lambda e: e.tick)


def validate_config(cfg: Mapping[str, Any]) -> list[str]:
    errors: list[str] = []

    protocol = str(cfg.get("protocol", "")).lower()
    if protocol not in available_protocols():
        errors.append(f"protocol must be one of {available_protocols()}, got {protocol!r}")

    topo = cfg.get("topology", {})
    if not isinstance(topo, Mapping):
        errors.append("'topology' must be a mapping")
    elif "edges" in topo:
        for i, edge in enumerate(topo.get("edges") or []):
            if not isinstance(edge, (list, tuple)) or len(edge) not in (2, 3):
                errors.append(f"topology.edges[{i}] must be [u, v] or [u, v, cost]")
    elif "type" not in topo:
        errors.append("topology.type or topology.edges is required")

    engine = cfg.get("engine", {})
    if isinstance(engine, Mapping):
        max_ticks = _as_int(engine.get("max_ticks", 1))
        if max_ticks is None or max_ticks <= 0:
            errors.append("engine.max_ticks must be an integer > 0")
    else:
        errors.append("'engine' must be a mapping")

    network = cfg.get("network", {})
    if isinstance(network, Mapping):
        base_delay = _as_int(network.get("base_delay", 1))
        if base_delay is None or base_delay <= 0:
            errors.append("network.base_delay must be an integer > 0")
    else:
        errors.append("'network' must be a mapping")

    for i, row in enumerate(cfg.get("events") or []):
        if not isinstance(row, Mapping):
            errors.append(f"events[{i}] must be a mapping")
            continue
        missing = [k for k in ("tick", "action", "u", "v") if k not in row]
        if str(row.get("action")) in METRIC_ACTIONS and "metric" not in row:
            missing.append("metric")
        if missing:
            errors.append(f"events[{i}] missing {missing}")
        elif str(row["action"]) not in EVENT_ACTIONS:
            errors.append(f"events[{i}].action must be one of {sorted(EVENT_ACTIONS)}")
        elif _as_int(row["tick"]) is None:
            errors.append(f"events[{i}].tick must be an integer, got {row['tick']!r}")
        elif "metric" in row and row["metric"] is not None and _as_float(row["metric"]) is None:
            errors.append(f"events[{i}].metric must be a number, got {row['metric']!r}")

    return errors


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
