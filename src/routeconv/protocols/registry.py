from __future__ import annotations

from typing import Dict, Type

from routeconv.protocols.base import RoutingProtocol
from routeconv.protocols.distance_vector import DistanceVectorProtocol
from routeconv.protocols.link_state import LinkStateProtocol
from routeconv.protocols.path_vector import PathVectorProtocol

_REGISTRY: Dict[str, Type[RoutingProtocol]] = {
    "dv": DistanceVectorProtocol,
    "ls": LinkStateProtocol,
    "pv": PathVectorProtocol,
}


def register_protocol(name: str, protocol_cls: Type[RoutingProtocol]) -> None:
    _REGISTRY[name] = protocol_cls


def load_protocol(name: str) -> Type[RoutingProtocol]:
    if name not in _REGISTRY:
        raise KeyError(f"Unknown protocol: {name}. Available: {sorted(_REGISTRY.keys())}")
    return _REGISTRY[name]


def available_protocols() -> list[str]:
    return sorted(_REGISTRY.keys())
