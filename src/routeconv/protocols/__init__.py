"""Routing protocol engines."""

from routeconv.protocols.base import HostContext, RoutingProtocol, live_neighbors
from routeconv.protocols.distance_vector import DistanceVectorProtocol, DvState
from routeconv.protocols.link_state import LinkStateProtocol, LsState
from routeconv.protocols.path_vector import PathVectorProtocol, PvState
from routeconv.protocols.registry import available_protocols, load_protocol, register_protocol

__all__ = [
    "HostContext",
    "RoutingProtocol",
    "live_neighbors",
    "DistanceVectorProtocol",
    "DvState",
    "LinkStateProtocol",
    "LsState",
    "PathVectorProtocol",
    "PvState",
    "available_protocols",
    "load_protocol",
    "register_protocol",
]
