from __future__ import annotations

from routeconv.core.cost import INFINITY
from routeconv.model.messages import PathVectorMessage, RouteAdvertisement
from routeconv.protocols.path_vector import PathVectorProtocol

NODES = [1, 2, 3, 4]


def _routes(sender: int, **routes) -> PathVectorMessage:
    table = {sender: RouteAdvertisement(cost=0.0, path=(sender,))}
    for key, (cost, path) in routes.items():
        table[int(key[1:])] = RouteAdvertisement(cost=cost, path=tuple(path))
    return PathVectorMessage(routes=table)


def test_init_state_knows_only_trivial_paths(make_host):
    host = make_host(1, NODES, {2: 1.0})
    state = PathVectorProtocol().init_state(host)

    assert state.cost(1, 1) == 0.0
    assert state.path(1, 1) == (1,)
    assert state.cost(1, 3) == INFINITY
    assert state.path(1, 3) == ()
    assert state.path(2, 2) == (2,)
    assert host.sent == []


def test_link_up_installs_one_hop_path(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {})
    state = proto.init_state(host)

    host.links[2] = 2.0
    assert proto.on_link_change(host, state, 2, 2.0) is True
    assert host.routes == {2: (2, 2.0)}
    assert state.path(1, 2) == (1, 2)

    (msg,) = host.sent_to(2)
    assert msg.routes[1] == RouteAdvertisement(cost=0.0, path=(1,))
    assert msg.routes[2] == RouteAdvertisement(cost=2.0, path=(1, 2))
    assert msg.routes[3].cost == INFINITY


def test_path_through_neighbor_is_prefixed_with_self(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0, 3: 5.0})
    state = proto.init_state(host)

    changed = proto.on_message(host, state, 2, _routes(2, n3=(1.0, (2, 3)), n4=(2.0, (2, 3, 4))))
    assert changed is True
    assert host.routes[3] == (2, 2.0)
    assert state.path(1, 3) == (1, 2, 3)
    assert state.path(1, 4) == (1, 2, 3, 4)
    assert state.next_hop(4) == 2


def test_rejects_paths_that_already_contain_self(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)

    looped = _routes(2, n4=(1.0, (2, 1, 4)))
    proto.on_message(host, state, 2, looped)

    assert 4 not in host.routes
    assert state.cost(1, 4) == INFINITY


def test_equal_cost_prefers_first_enumerated_neighbor(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0, 3: 1.0})
    state = proto.init_state(host)

    proto.on_message(host, state, 3, _routes(3, n4=(1.0, (3, 4))))
    assert state.path(1, 4) == (1, 3, 4)
    proto.on_message(host, state, 2, _routes(2, n4=(1.0, (2, 4))))
    assert state.path(1, 4) == (1, 2, 4)
    assert host.routes[4] == (2, 2.0)


def test_changed_path_with_same_cost_is_readvertised(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    proto.on_message(host, state, 2, _routes(2, n4=(2.0, (2, 3, 4))))

    host.reset()
    assert proto.on_message(host, state, 2, _routes(2, n4=(2.0, (2, 5, 4)))) is True
    (msg,) = host.sent_to(2)
    assert msg.routes[4].path == (1, 2, 5, 4)


def test_link_failure_invalidates_routes_through_neighbor(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0, 3: 1.0})
    state = proto.init_state(host)
    proto.on_message(host, state, 2, _routes(2, n4=(1.0, (2, 4))))
    proto.on_message(host, state, 3, _routes(3))
    assert host.routes[4] == (2, 2.0)

    host.reset()
    host.links.pop(2)
    assert proto.on_link_change(host, state, 2, INFINITY) is True
    assert 4 not in host.routes
    assert 2 not in host.routes
    assert (4, None, INFINITY) in host.route_calls
    (msg,) = host.sent_to(3)
    assert msg.routes[4].cost == INFINITY
    assert msg.routes[4].path == ()


def test_invalidate_route_reports_nothing_to_withdraw(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    assert proto.invalidate_route(host, state, 3) is False


def test_redelivered_routes_are_idempotent(make_host):
    proto = PathVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    msg = _routes(2, n3=(1.0, (2, 3)))
    proto.on_message(host, state, 2, msg)

    host.reset()
    assert proto.on_message(host, state, 2, msg) is False
    assert host.sent == []
    assert host.route_calls == []
