"""Node core: identity, outbound messages and wiring of the inbound path.

Everything here is internal; applications use the ``UdpNode`` facade.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from loguru import logger
from pydantic import ValidationError

from udpnode.config.schema import NodeOptions, NodeSettings
from udpnode.dispatcher import Dispatcher, NodeCallback
from udpnode.errors import (
    DecodeError,
    InvalidArgumentError,
    MissingAddressError,
    MissingTypeError,
    NotConfiguredError,
)
from udpnode.events import EventHandler, EventRegistry
from udpnode.identity import Identity
from udpnode.protocol import MAX_DATAGRAM_SIZE, Envelope, MsgType, encode_envelope
from udpnode.transport import CloseCompletion, DatagramTransport, SendCompletion, UDPTransport

_ENVELOPE_KEYS = frozenset({"type", "from", "node", "filter", "data", "port", "address"})


def _coerce_options(options: NodeOptions | Mapping[str, Any] | None, overrides: dict[str, Any]) -> NodeOptions:
    try:
        if options is None:
            return NodeOptions.model_validate(overrides)
        if isinstance(options, NodeOptions):
            merged = options.model_dump(exclude_none=True)
            merged.update(overrides)
            return NodeOptions.model_validate(merged)
        if isinstance(options, Mapping):
            return NodeOptions.model_validate({**options, **overrides})
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid node options: {exc}") from exc
    raise InvalidArgumentError(
        f"configure() expects a mapping or NodeOptions, got {type(options).__name__}"
    )


def _coerce_envelope(message: Envelope | Mapping[str, Any]) -> Envelope:
    if isinstance(message, Envelope):
        return message
    if not isinstance(message, Mapping):
        raise InvalidArgumentError(
            f"send() expects an Envelope or a mapping, got {type(message).__name__}"
        )
    unknown = set(message) - _ENVELOPE_KEYS
    if unknown:
        raise InvalidArgumentError(f"Unknown envelope fields: {', '.join(sorted(map(str, unknown)))}")
    if message.get("type") is None:
        raise MissingTypeError()
    try:
        return Envelope.from_dict(message)
    except DecodeError as exc:
        raise InvalidArgumentError(f"Invalid envelope: {exc.reason}") from exc


def _coerce_filter(filter_: Iterable[str] | None) -> list[str] | None:
    if filter_ is None:
        return None
    if isinstance(filter_, str):
        raise InvalidArgumentError("'filter' must be a list of role strings, not a string")
    try:
        roles = list(filter_)
    except TypeError as exc:
        raise InvalidArgumentError("'filter' must be a list of role strings") from exc
    if not all(isinstance(role, str) for role in roles):
        raise InvalidArgumentError("'filter' must be a list of role strings")
    return roles or None


def _check_callback(callback: Callable[..., Any] | None, what: str) -> None:
    if callback is not None and not callable(callback):
        raise InvalidArgumentError(f"Invalid argument '{what}': must be callable.")


class NodeCore:
    """One peer: an identity, a transport binding and its dispatch tables.

    Parameters
    ----------
    transport:
        Datagram transport owned by this node (default: a fresh ``UDPTransport``).
    settings:
        Defaults for options omitted from ``configure`` (default: read from
        ``UDPNODE_*`` environment variables at configure time).
    """

    def __init__(
        self,
        transport: DatagramTransport | None = None,
        settings: NodeSettings | None = None,
    ) -> None:
        self.identity = Identity()
        self.settings = settings
        self.events = EventRegistry()
        self.transport = transport or UDPTransport()
        self.dispatcher = Dispatcher(lambda: self.identity, self.events, self._transmit)
        self.transport.on_message(self.dispatcher.dispatch)
        self.is_closed = False

    # -- setup ---------------------------------------------------------------

    def configure(self, options: NodeOptions | Mapping[str, Any] | None = None, **overrides: Any) -> None:
        """Apply *options* (defaults for omitted fields) and bind the transport.

        ``id`` survives re-configuration unless overridden.  The transport is
        rebound when the port changes or the node was closed; configuring a
        closed node reopens it.
        """
        opts = _coerce_options(options, overrides)
        identity = self.identity.configured_with(opts, self.settings)
        logger.debug("[UdpNode] setting configuration: {}", opts.model_dump(exclude_none=True))

        if (
            self.is_closed
            or not self.identity.is_configured
            or identity.port != self.identity.port
        ):
            bound = self.transport.bind(identity.port)
            identity = identity.bound_to(bound)
            self.is_closed = False
        self.identity = identity
        logger.info(f"[UdpNode] [{identity.display_name}] configured as {identity.id}")

    def current_config(self) -> dict[str, Any]:
        """Snapshot of this node's identity in wire form."""
        return self.identity.snapshot()

    def _require_configured(self, operation: str) -> Identity:
        if not self.identity.is_configured:
            raise NotConfiguredError(operation)
        return self.identity

    # -- sending -------------------------------------------------------------

    def broadcast(
        self,
        filter: Iterable[str] | None = None,
        port: int | None = None,
        address: str | None = None,
        data: Any = None,
        callback: SendCompletion | None = None,
    ) -> None:
        """Ask every peer (or only those whose role is in *filter*) to identify itself."""
        me = self._require_configured("broadcast")
        roles = _coerce_filter(filter)
        logger.debug(f"[UdpNode] [{me.display_name}] looking for nodes: {roles or 'ALL'}")
        self.send(
            Envelope(
                type=MsgType.BROADCAST,
                node=me.snapshot(),
                filter=roles,
                data=data,
                port=port if port is not None else me.port,
                address=address or me.broadcast_address,
            ),
            callback,
        )

    def ping(
        self,
        address: str | None = None,
        port: int | None = None,
        data: Any = None,
        callback: SendCompletion | None = None,
    ) -> None:
        """Ping the peer at *address*; it answers with a pong if interested."""
        me = self._require_configured("ping")
        if not address:
            raise MissingAddressError()
        port = port if port is not None else me.port
        logger.debug(f"[UdpNode] [{me.display_name}] sending PING to {address}:{port}")
        self.send(
            Envelope(type=MsgType.PING, node=me.snapshot(), data=data, port=port, address=address),
            callback,
        )

    def send(self, message: Envelope | Mapping[str, Any], callback: SendCompletion | None = None) -> None:
        """Send any envelope.  ``from`` is stamped, port/address default to this node's."""
        self._require_configured("send")
        env = _coerce_envelope(message)
        if not env.type:
            raise MissingTypeError()
        _check_callback(callback, "callback")
        self._transmit(env, callback)

    def _transmit(self, env: Envelope, callback: SendCompletion | None = None) -> None:
        me = self.identity
        port = env.port if env.port is not None else me.port
        address = env.address or me.broadcast_address
        try:
            payload = encode_envelope(replace(env, port=port, address=address), me.id)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Envelope is not JSON-serialisable: {exc}") from exc
        if len(payload) > MAX_DATAGRAM_SIZE:
            raise InvalidArgumentError(
                f"Envelope is {len(payload)} bytes, over the {MAX_DATAGRAM_SIZE}-byte datagram limit"
            )

        def _completion(error: OSError | None) -> Any:
            if error is None:
                logger.debug(f"[UdpNode] [{me.display_name}] {env.type} SENT to {address}:{port}")
            if callback is not None:
                return callback(error)
            return None

        self.transport.send_datagram(payload, address, port, _completion)

    # -- receiving -----------------------------------------------------------

    def on_node(self, callback: NodeCallback | None) -> None:
        """Set the discovery callback; replaces any previous one."""
        _check_callback(callback, "callback")
        self.dispatcher.on_node = callback

    def on(self, event_type: str, handler: EventHandler) -> int:
        return self.events.on(event_type, handler)

    def off(self, event_type: str, index: int | None = None) -> None:
        """Remove all handlers for *event_type*, or only the one at *index*."""
        self.events.off(event_type, index)

    # -- shutdown ------------------------------------------------------------

    def close(self, callback: CloseCompletion | None = None) -> None:
        """Release the transport.  Calls after the first are no-ops."""
        if self.is_closed:
            return
        _check_callback(callback, "callback")
        self.is_closed = True
        logger.debug(f"[UdpNode] [{self.identity.display_name}] CLOSE")
        self.transport.close(callback)
