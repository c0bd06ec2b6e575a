from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict

from routeconv.config import ScenarioConfig
from routeconv.core.engine_tick import TickEngine
from routeconv.core.logging import JsonlLogger
from routeconv.core.network_model import NetworkModel
from routeconv.core.runtime import RouterRuntime
from routeconv.core.topology import Topology
from routeconv.utils.io import make_run_dir, write_json

_log = logging.getLogger(__name__)


class EmuBackend:
    """Runs one scenario on the in-process tick simulator and writes its artifacts."""

    def run(self, config: Dict[str, Any]) -> Dict[str, Any]:
        scenario = ScenarioConfig.from_dict(config)
        return self.run_scenario(scenario)

    def run_scenario(self, scenario: ScenarioConfig) -> Dict[str, Any]:
        topology = Topology.from_config(scenario.topology, seed=scenario.seed)
        runtime = RouterRuntime(
            topology=topology,
            protocol_name=scenario.protocol,
            protocol_config=scenario.protocol_params,
        )
        network = NetworkModel(
            base_delay=scenario.network.base_delay,
            jitter=scenario.network.jitter,
            seed=scenario.seed,
        )

        run_dir = make_run_dir(scenario.output_dir, scenario.name, scenario.protocol)
        run_id = run_dir.name
        logger = JsonlLogger(run_dir / "events.jsonl")
        _log.info(
            "run %s: protocol=%s nodes=%d links=%d events=%d",
            run_id,
            scenario.protocol,
            len(topology.nodes()),
            len(topology.edge_list()),
            len(scenario.events),
        )

        engine = TickEngine(
            runtime=runtime,
            network_model=network,
            max_ticks=scenario.engine.max_ticks,
            events=scenario.events,
            logger=logger,
            convergence_window=scenario.engine.convergence_window,
        )
        result = engine.run()

        result_payload = {
            "run_id": run_id,
            "name": scenario.name,
            "seed": scenario.seed,
            "protocol": scenario.protocol,
            "converged_tick": result.converged_tick,
            "quiescent": result.quiescent,
            "route_hashes": result.route_hashes,
            "route_tables": result.route_tables,
            "delivered_messages": result.delivered_messages,
            "events_applied": result.events_applied,
            "route_flaps": result.route_flaps,
            "topology_edges": [asdict(e) for e in topology.edge_list()],
        }
        write_json(run_dir / "result.json", result_payload)
        write_json(run_dir / "config.effective.json", _effective_config(scenario))
        _log.info("run %s finished: converged_tick=%s quiescent=%s", run_id, result.converged_tick, result.quiescent)
        return result_payload


def _effective_config(scenario: ScenarioConfig) -> Dict[str, Any]:
    raw = asdict(scenario)
    raw["events"] = [
        {"tick": e.tick, "action": e.action, **e.params} for e in scenario.events
    ]
    return raw
