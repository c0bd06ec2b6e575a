"""Shared control-plane models."""

from routeconv.model.messages import (
    DistanceVectorMessage,
    LinkStateEntry,
    LinkStateMessage,
    MessageDecodeError,
    MessageKind,
    PathVectorMessage,
    RouteAdvertisement,
    decode_message,
    encode_message,
)
from routeconv.model.routing import Route, RouteTable

__all__ = [
    "DistanceVectorMessage",
    "LinkStateEntry",
    "LinkStateMessage",
    "MessageDecodeError",
    "MessageKind",
    "PathVectorMessage",
    "RouteAdvertisement",
    "decode_message",
    "encode_message",
    "Route",
    "RouteTable",
]
