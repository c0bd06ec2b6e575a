from __future__ import annotations

from routeconv.core.cost import INFINITY
from routeconv.model.messages import DistanceVectorMessage, encode_message
from routeconv.protocols.distance_vector import DistanceVectorProtocol

NODES = [1, 2, 3, 4]


def _vector(**costs: float) -> DistanceVectorMessage:
    return DistanceVectorMessage(costs={int(k[1:]): v for k, v in costs.items()})


def test_init_state_seeds_self_only(make_host):
    host = make_host(1, NODES, {2: 1.0})
    state = DistanceVectorProtocol().init_state(host)

    assert state.distance[1] == 0.0
    assert all(state.distance[n] == INFINITY for n in (2, 3, 4))
    assert all(hop is None for hop in state.next_hop.values())
    assert state.neighbor_cost[3][3] == 0.0
    assert state.neighbor_cost[3][4] == INFINITY
    assert host.sent == []


def test_link_up_installs_direct_route_and_poisons_it_towards_that_neighbor(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {})
    state = proto.init_state(host)

    host.links[2] = 1.0
    assert proto.on_link_change(host, state, 2, 1.0) is True

    assert host.routes == {2: (2, 1.0)}
    (msg,) = host.sent_to(2)
    assert msg.costs[1] == 0.0
    assert msg.costs[2] == INFINITY


def test_better_vector_from_neighbor_updates_route(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {2: 1.0, 3: 4.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)
    proto.on_link_change(host, state, 3, 4.0)
    assert host.routes[3] == (3, 4.0)

    host.reset()
    changed = proto.on_message(host, state, 2, _vector(n1=INFINITY, n2=0.0, n3=1.0, n4=INFINITY))

    assert changed is True
    assert host.routes[3] == (2, 2.0)
    assert state.next_hop[3] == 2
    to_2 = host.sent_to(2)[-1]
    to_3 = host.sent_to(3)[-1]
    assert to_2.costs[3] == INFINITY
    assert to_3.costs[3] == 2.0


def test_equal_cost_prefers_first_enumerated_neighbor(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {2: 1.0, 3: 1.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)
    proto.on_link_change(host, state, 3, 1.0)

    proto.on_message(host, state, 3, _vector(n3=0.0, n4=1.0))
    assert host.routes[4] == (3, 2.0)

    proto.on_message(host, state, 2, _vector(n2=0.0, n4=1.0))
    assert host.routes[4] == (2, 2.0)


def test_redelivered_vector_is_idempotent(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)
    vector = _vector(n1=INFINITY, n2=0.0, n3=1.0)
    proto.on_message(host, state, 2, vector)

    host.reset()
    assert proto.on_message(host, state, 2, vector) is False
    assert host.sent == []
    assert host.route_calls == []


def test_lost_link_withdraws_routes_through_it(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)
    proto.on_message(host, state, 2, _vector(n1=INFINITY, n2=0.0, n3=1.0))

    host.reset()
    host.links.pop(2)
    assert proto.on_link_change(host, state, 2, INFINITY) is True
    assert host.routes == {}
    assert (3, None, INFINITY) in host.route_calls
    assert host.sent == []


def test_poison_reverse_can_be_disabled(make_host):
    proto = DistanceVectorProtocol({"poison_reverse": False})
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)

    (msg,) = host.sent_to(2)
    assert msg.costs[2] == 1.0


def test_infinity_metric_caps_advertised_costs(make_host):
    proto = DistanceVectorProtocol({"infinity_metric": 16})
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)
    proto.on_link_change(host, state, 2, 1.0)

    proto.on_message(host, state, 2, _vector(n2=0.0, n3=15.0))
    assert 3 not in host.routes
    assert state.distance[3] == INFINITY


def test_undecodable_payload_is_dropped(make_host):
    proto = DistanceVectorProtocol()
    host = make_host(1, NODES, {2: 1.0})
    state = proto.init_state(host)

    assert proto.on_receive(host, state, 2, b"garbage") is False
    assert proto.on_receive(host, state, 2, encode_message(_vector(n2=0.0, n3=1.0))) is True
    assert host.routes[3] == (2, 2.0)


def test_metric_bound_defaults_to_sixteen_and_can_be_lifted():
    assert DistanceVectorProtocol().infinity_metric == 16.0
    assert DistanceVectorProtocol({"infinity_metric": None}).infinity_metric == INFINITY
