"""Protocol dispatcher: classify each inbound datagram and react to it.

The dispatcher keeps no per-message state.  For every datagram it:

- ``ping`` / ``broadcast``: if the request is of interest, fires the discovery
  callback and replies with a ``pong`` carrying this node's identity.
- ``pong``: fires the discovery callback; never replies.
- registered custom type: runs every handler for that type, in order.
- anything else (unknown type, undecodable bytes): logs and drops it.
"""

from __future__ import annotations

import json
from typing import Awaitable, Callable

from loguru import logger

from udpnode.errors import DecodeError
from udpnode.events import EventRegistry
from udpnode.identity import Identity
from udpnode.interest import is_of_interest
from udpnode.protocol import Envelope, MsgType, Remote, decode_envelope
from udpnode.resilience import call_handler

# Discovery callback: (envelope, remote) -> None, sync or async.
NodeCallback = Callable[[Envelope, Remote], "Awaitable[None] | None"]


def _describe(env: Envelope) -> str:
    return json.dumps(env.to_dict(), ensure_ascii=False, default=repr)


class Dispatcher:
    """Routes decoded envelopes for one node.

    Parameters
    ----------
    identity:
        Returns the node's current identity (it changes on re-configure).
    events:
        The node's custom event registry.
    reply:
        Sends an envelope on the node's transport; used for ``pong`` replies.
    """

    def __init__(
        self,
        identity: Callable[[], Identity],
        events: EventRegistry,
        reply: Callable[[Envelope], None],
    ) -> None:
        self._identity = identity
        self._events = events
        self._reply = reply
        # Single slot, last registration wins.
        self.on_node: NodeCallback | None = None

    async def dispatch(self, data: bytes, remote: Remote) -> None:
        """Handle one raw datagram received from *remote*."""
        me = self._identity()
        env = decode_envelope(data)
        if isinstance(env, DecodeError):
            logger.warning(
                f"[UdpNode/Dispatcher] [{me.display_name}] could not parse datagram "
                f"from {remote.address}:{remote.port}: {env.reason}"
            )
            return

        if env.type in (MsgType.PING, MsgType.BROADCAST):
            await self._on_request(env, remote, me)
        elif env.type == MsgType.PONG:
            await self._on_pong(env, remote, me)
        elif self._events.is_registered(env.type):
            await self._on_custom_event(env, remote, me)
        else:
            logger.debug(
                f"[UdpNode/Dispatcher] [{me.display_name}] got INVALID message: {_describe(env)}"
            )

    # -- built-in types ------------------------------------------------------

    async def _on_request(self, env: Envelope, remote: Remote, me: Identity) -> None:
        """A ping or broadcast: announce the peer and answer with a pong."""
        if not is_of_interest(env, me):
            return

        logger.debug(
            f"[UdpNode/Dispatcher] [{me.display_name}] got {env.type.upper()}: {_describe(env)}"
        )
        await self._notify_node(env, remote)
        self._reply(
            Envelope(
                type=MsgType.PONG,
                node=me.snapshot(),
                port=remote.port,
                address=remote.address,
            )
        )

    async def _on_pong(self, env: Envelope, remote: Remote, me: Identity) -> None:
        logger.debug(f"[UdpNode/Dispatcher] [{me.display_name}] got PONG: {_describe(env)}")
        await self._notify_node(env, remote)

    async def _notify_node(self, env: Envelope, remote: Remote) -> None:
        if self.on_node is not None:
            await call_handler(self.on_node, env, remote, label="onNode callback")

    # -- custom events -------------------------------------------------------

    async def _on_custom_event(self, env: Envelope, remote: Remote, me: Identity) -> None:
        logger.debug(f"[UdpNode/Dispatcher] [{me.display_name}] got {env.type}: {_describe(env)}")
        for handler in self._events.handlers(env.type):
            await call_handler(handler, env, remote, label=f"{env.type!r} handler")
