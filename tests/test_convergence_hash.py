from __future__ import annotations

from routeconv.core.convergence import ConvergenceTracker, hash_routes


def test_convergence_hash_stable_against_dict_order():
    a = {
        1: {3: [2, 2.0], 2: [2, 1.0]},
        2: {1: [1, 1.0], 3: [3, 1.0]},
    }
    b = {
        2: {3: [3, 1.0], 1: [1, 1.0]},
        1: {2: [2, 1.0], 3: [2, 2.0]},
    }
    assert hash_routes(a) == hash_routes(b)


def test_convergence_hash_sees_cost_changes():
    a = {1: {3: [2, 2.0]}}
    b = {1: {3: [2, 3.0]}}
    assert hash_routes(a) != hash_routes(b)


def test_tracker_reports_tick_of_last_change():
    tracker = ConvergenceTracker(stable_window=3)
    tables = [{1: {}}, {1: {2: [2, 1.0]}}, {1: {2: [2, 1.0]}}, {1: {2: [2, 1.0]}}]
    results = [tracker.observe(tick, t) for tick, t in enumerate(tables)]
    assert results == [False, False, False, True]
    assert tracker.converged_tick == 1

    tracker.observe(4, {1: {}})
    assert tracker.converged_tick is None
