"""Public facade for a udpnode peer.

``UdpNode`` exposes only the whitelisted operations; identity, codec,
dispatcher and registry stay internal to the wrapped ``NodeCore``.

Usage::

    node = UdpNode()
    node.configure(name="kitchen", role="sensor")
    node.on_node(lambda env, remote: print(env.node, remote))
    node.broadcast(filter=["hub"])
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from udpnode.config.schema import NodeOptions, NodeSettings
from udpnode.core import NodeCore
from udpnode.dispatcher import NodeCallback
from udpnode.events import EventHandler
from udpnode.protocol import Envelope
from udpnode.transport import CloseCompletion, DatagramTransport, SendCompletion


class UdpNode:
    """One peer on the LAN.

    ``configure``, ``broadcast``, ``ping``, ``send`` and ``on_node`` return the
    node so calls can be chained.
    """

    __slots__ = ("_node",)

    def __init__(
        self,
        transport: DatagramTransport | None = None,
        settings: NodeSettings | None = None,
    ) -> None:
        self._node = NodeCore(transport=transport, settings=settings)

    def __repr__(self) -> str:
        cfg = self._node.current_config()
        return f"UdpNode(id={cfg['id']!r}, port={cfg.get('port')!r}, role={cfg.get('role')!r})"

    def configure(self, options: NodeOptions | Mapping[str, Any] | None = None, **overrides: Any) -> UdpNode:
        """Set identity/network options and start listening (needs a running event loop)."""
        self._node.configure(options, **overrides)
        return self

    def current_config(self) -> dict[str, Any]:
        """Read-only copy of this node's identity."""
        return self._node.current_config()

    def broadcast(
        self,
        filter: Iterable[str] | None = None,
        port: int | None = None,
        address: str | None = None,
        data: Any = None,
        callback: SendCompletion | None = None,
    ) -> UdpNode:
        self._node.broadcast(filter=filter, port=port, address=address, data=data, callback=callback)
        return self

    def ping(
        self,
        address: str | None = None,
        port: int | None = None,
        data: Any = None,
        callback: SendCompletion | None = None,
    ) -> UdpNode:
        self._node.ping(address=address, port=port, data=data, callback=callback)
        return self

    def send(self, message: Envelope | Mapping[str, Any], callback: SendCompletion | None = None) -> UdpNode:
        self._node.send(message, callback)
        return self

    def on_node(self, callback: NodeCallback | None) -> UdpNode:
        self._node.on_node(callback)
        return self

    def on(self, event_type: str, handler: EventHandler) -> int:
        """Listen for *event_type* messages; returns the handler index for ``off``."""
        return self._node.on(event_type, handler)

    def off(self, event_type: str, index: int | None = None) -> None:
        """Stop listening for *event_type*: every handler, or only the one at *index*."""
        self._node.off(event_type, index)

    def registered_events(self) -> dict[str, tuple[EventHandler, ...]]:
        """Snapshot of custom event handlers.

        A type removed with ``off(type)`` is absent; one whose handlers were all
        removed by index maps to an empty tuple.
        """
        return self._node.events.snapshot()

    def close(self, callback: CloseCompletion | None = None) -> None:
        self._node.close(callback)

    @property
    def is_closed(self) -> bool:
        return self._node.is_closed
