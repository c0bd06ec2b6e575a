from __future__ import annotations

import logging
from typing import Iterable, List

from routeconv.core.convergence import ConvergenceTracker, hash_routes
from routeconv.core.logging import JsonlLogger
from routeconv.core.network_model import NetworkModel
from routeconv.core.runtime import RouterRuntime
from routeconv.core.types import ExternalEvent, RunResult

_log = logging.getLogger(__name__)


class TickEngine:
    """Serializes every handler: events first, then each due message, one at a time."""

    def __init__(
        self,
        runtime: RouterRuntime,
        network_model: NetworkModel,
        max_ticks: int,
        events: Iterable[ExternalEvent] | None = None,
        logger: JsonlLogger | None = None,
        convergence_window: int = 5,
    ) -> None:
        self.runtime = runtime
        self.network_model = network_model
        self.max_ticks = int(max_ticks)
        self.events = sorted(list(events or []), key=lambda e: e.tick)
        self.logger = logger or JsonlLogger(path=None)
        self.tracker = ConvergenceTracker(stable_window=convergence_window)

    def run(self) -> RunResult:
        route_hashes: List[str] = []
        event_idx = 0

        self.runtime.bootstrap()
        self._flush_outbound(0)

        for tick in range(self.max_ticks):
            while event_idx < len(self.events) and self.events[event_idx].tick <= tick:
                event = self.events[event_idx]
                self.runtime.handle_event(tick, event)
                self.logger.log("event_applied", tick=tick, action=event.action, params=event.params)
                _log.info("tick %d: applied %s %s", tick, event.action, event.params)
                event_idx += 1
                self._flush_outbound(tick)

            for msg in self.network_model.deliver(tick):
                self.runtime.process_tick(tick, [msg])
                self._flush_outbound(tick)

            route_hash = hash_routes(self.runtime.route_tables)
            route_hashes.append(route_hash)
            self.tracker.observe(tick, self.runtime.route_tables)
            self.logger.log(
                "tick",
                tick=tick,
                route_hash=route_hash,
                delivered=self.network_model.delivered_messages,
                in_flight=self.network_model.in_flight,
                flaps=self.runtime.route_flaps,
            )

        self.logger.close()
        quiescent = self.network_model.in_flight == 0 and event_idx == len(self.events)
        if not quiescent:
            _log.warning(
                "run ended with %d messages in flight and %d pending events",
                self.network_model.in_flight,
                len(self.events) - event_idx,
            )
        return RunResult(
            converged_tick=self.tracker.converged_tick,
            route_hashes=route_hashes,
            route_tables=self.runtime.route_tables,
            delivered_messages=self.network_model.delivered_messages,
            events_applied=event_idx,
            route_flaps=self.runtime.route_flaps,
            quiescent=quiescent,
        )

    def _flush_outbound(self, tick: int) -> None:
        for msg in self.runtime.consume_outbound():
            self.network_model.send(msg, now_tick=tick)
