from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, TypeVar

from routeconv.core.cost import Cost, NodeId, is_finite
from routeconv.model.messages import MessageDecodeError, RoutingMessage, decode_message

_log = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class HostContext(ABC):
    """Primitives the simulator exposes to the node whose handler is running."""

    @property
    @abstractmethod
    def node_id(self) -> NodeId:
        raise NotImplementedError

    @abstractmethod
    def nodes(self) -> List[NodeId]:
        """All present nodes, ascending. Stable for the duration of one event."""
        raise NotImplementedError

    @abstractmethod
    def link_cost(self, node: NodeId) -> Cost:
        """Live cost of the local link to ``node``; ``INFINITY`` when there is none."""
        raise NotImplementedError

    @abstractmethod
    def send_message(self, to: NodeId, message: RoutingMessage) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_route(self, destination: NodeId, next_hop: Optional[NodeId], cost: Cost) -> None:
        """Install or update a route; ``next_hop=None`` with ``INFINITY`` withdraws it."""
        raise NotImplementedError


def live_neighbors(ctx: HostContext) -> List[NodeId]:
    me = ctx.node_id
    return [n for n in ctx.nodes() if n != me and is_finite(ctx.link_cost(n))]


class RoutingProtocol(ABC, Generic[StateT]):
    """Engine contract shared by the distance-vector, link-state and path-vector engines.

    Engines hold configuration only. Per-node state is created by ``init_state``,
    owned by the host and handed back on every callback. Handlers return True
    when the node's routes changed.
    """

    name: str = ""
    message_type: type = object

    def __init__(self, config: dict | None = None) -> None:
        self.config = dict(config or {})

    @abstractmethod
    def init_state(self, ctx: HostContext) -> StateT:
        raise NotImplementedError

    @abstractmethod
    def on_link_change(self, ctx: HostContext, state: StateT, neighbor: NodeId, new_cost: Cost) -> bool:
        raise NotImplementedError

    @abstractmethod
    def on_message(self, ctx: HostContext, state: StateT, sender: NodeId, message: Any) -> bool:
        raise NotImplementedError

    def on_receive(self, ctx: HostContext, state: StateT, sender: NodeId, payload: bytes) -> bool:
        try:
            message = decode_message(payload)
        except MessageDecodeError as exc:
            _log.warning("node %s: drop invalid message from %s: %s", ctx.node_id, sender, exc)
            return False
        if not isinstance(message, self.message_type):
            _log.warning(
                "node %s: drop %s message from %s, expected %s",
                ctx.node_id,
                message.kind.value,
                sender,
                self.name,
            )
            return False
        return self.on_message(ctx, state, int(sender), message)
