from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Tuple, Union

from routeconv.core.cost import INFINITY, Cost, NodeId


class MessageKind(str, Enum):
    DV_VECTOR = "dv_vector"
    LS_DATABASE = "ls_database"
    PV_ROUTES = "pv_routes"


class MessageDecodeError(ValueError):
    """Raised when a payload is not a well-formed routing message."""


@dataclass(frozen=True)
class DistanceVectorMessage:
    """Cost per destination as seen by the sender, poisoned entries at ``INFINITY``."""

    costs: Dict[NodeId, Cost] = field(default_factory=dict)

    kind = MessageKind.DV_VECTOR

    def to_dict(self) -> Dict[str, Any]:
        return {"costs": _encode_costs(self.costs)}


@dataclass(frozen=True)
class LinkStateEntry:
    """One owner's link-cost vector together with its version."""

    costs: Dict[NodeId, Cost]
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"costs": _encode_costs(self.costs), "version": int(self.version)}


@dataclass(frozen=True)
class LinkStateMessage:
    """Full link-state database, keyed by owner."""

    entries: Dict[NodeId, LinkStateEntry] = field(default_factory=dict)

    kind = MessageKind.LS_DATABASE

    def to_dict(self) -> Dict[str, Any]:
        return {"entries": {str(owner): entry.to_dict() for owner, entry in self.entries.items()}}


@dataclass(frozen=True)
class RouteAdvertisement:
    cost: Cost
    path: Tuple[NodeId, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"cost": _encode_cost(self.cost), "path": [int(n) for n in self.path]}


@dataclass(frozen=True)
class PathVectorMessage:
    """The sender's chosen ``(cost, path)`` for every destination."""

    routes: Dict[NodeId, RouteAdvertisement] = field(default_factory=dict)

    kind = MessageKind.PV_ROUTES

    def to_dict(self) -> Dict[str, Any]:
        return {"routes": {str(dst): adv.to_dict() for dst, adv in self.routes.items()}}


RoutingMessage = Union[DistanceVectorMessage, LinkStateMessage, PathVectorMessage]


def encode_message(message: RoutingMessage) -> bytes:
    body = {"kind": message.kind.value, "payload": message.to_dict()}
    return json.dumps(body, sort_keys=True, separators=(",", ":"), allow_nan=False).encode("utf-8")


def decode_message(data: bytes) -> RoutingMessage:
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MessageDecodeError(f"not a JSON message: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise MessageDecodeError("message must be a JSON object")
    try:
        kind = MessageKind(str(raw.get("kind")))
    except ValueError as exc:
        raise MessageDecodeError(f"unknown message kind: {raw.get('kind')!r}") from exc
    payload = raw.get("payload", {})
    if not isinstance(payload, Mapping):
        raise MessageDecodeError("payload must be a JSON object")

    try:
        if kind is MessageKind.DV_VECTOR:
            return DistanceVectorMessage(costs=_decode_costs(payload.get("costs", {})))
        if kind is MessageKind.LS_DATABASE:
            entries = {
                int(owner): LinkStateEntry(
                    costs=_decode_costs(entry.get("costs", {})),
                    version=int(entry.get("version", 0)),
                )
                for owner, entry in dict(payload.get("entries", {})).items()
            }
            return LinkStateMessage(entries=entries)
        routes = {
            int(dst): RouteAdvertisement(
                cost=_decode_cost(adv.get("cost")),
                path=tuple(int(n) for n in adv.get("path", [])),
            )
            for dst, adv in dict(payload.get("routes", {})).items()
        }
        return PathVectorMessage(routes=routes)
    except (AttributeError, TypeError, ValueError) as exc:
        raise MessageDecodeError(f"malformed {kind.value} payload: {exc}") from exc


def _encode_cost(cost: Cost) -> float | None:
    if cost >= INFINITY:
        return None
    return float(cost)


def _decode_cost(raw: Any) -> Cost:
    if raw is None:
        return INFINITY
    value = float(raw)
    if value < 0:
        raise ValueError(f"negative cost {value}")
    return value


def _encode_costs(costs: Mapping[NodeId, Cost]) -> Dict[str, float | None]:
    return {str(int(node)): _encode_cost(cost) for node, cost in costs.items()}


def _decode_costs(raw: Mapping[str, Any]) -> Dict[NodeId, Cost]:
    return {int(node): _decode_cost(cost) for node, cost in dict(raw).items()}
