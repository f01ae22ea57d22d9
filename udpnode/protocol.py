"""Wire-level protocol for udpnode messages.

Every message is a single UDP datagram holding one UTF-8 JSON object.

Envelope format
---------------
{
    "type": "...",           # "ping" | "pong" | "broadcast" | custom event name
    "from": "node-id",       # sender id, stamped on send
    "node": { ... },         # sender identity snapshot (ping / pong / broadcast)
    "filter": ["role", ...], # broadcast only; empty or absent = everyone
    "data": ...,             # opaque application payload
    "port": 3024,            # destination port of this send
    "address": "..."         # destination address of this send
}

Fields that are unset are omitted from the datagram.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping

from udpnode.errors import DecodeError

# Largest payload a single IPv4 UDP datagram can carry.
MAX_DATAGRAM_SIZE = 65507


class MsgType(str, Enum):
    """Built-in message types.  Any other type string is a custom event."""

    # Direct request to one peer
    PING = "ping"
    # Identity reply to a ping or broadcast
    PONG = "pong"
    # Discovery request to every peer, optionally filtered by role
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class Remote:
    """Address and port a datagram came from."""

    address: str
    port: int


@dataclass(frozen=True)
class Envelope:
    """One udpnode message."""

    type: str
    from_: str | None = None  # "from" on the wire
    node: dict[str, Any] | None = None
    filter: list[str] | None = None
    data: Any = None
    port: int | None = None
    address: str | None = None

    def __post_init__(self) -> None:
        # Built-in types are stored as their plain string value.
        if isinstance(self.type, MsgType):
            object.__setattr__(self, "type", self.type.value)

    def stamped(self, sender_id: str) -> Envelope:
        """Return a copy whose ``from`` is *sender_id*."""
        return replace(self, from_=sender_id)

    # -- serialisation -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the envelope as a plain dict, omitting unset fields."""
        d: dict[str, Any] = {
            "type": self.type,
            "from": self.from_,
            "node": self.node,
            "filter": self.filter,
            "data": self.data,
            "port": self.port,
            "address": self.address,
        }
        return {k: v for k, v in d.items() if v is not None}

    def to_bytes(self) -> bytes:
        """Serialise to the datagram body.

        Raises ``TypeError`` / ``ValueError`` when ``data`` is not JSON-serialisable.
        """
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Envelope:
        """Build an envelope from a decoded JSON object.

        Unknown keys are ignored.  A missing ``type`` becomes ``""`` so callers
        can report it in their own terms.
        """
        msg_type = obj.get("type", "")
        if not isinstance(msg_type, str):
            raise DecodeError(f"'type' must be a string, got {type(msg_type).__name__}")

        sender = obj.get("from")
        if sender is not None and not isinstance(sender, str):
            raise DecodeError("'from' must be a string")

        node = obj.get("node")
        if node is not None and not isinstance(node, dict):
            raise DecodeError("'node' must be an object")

        filter_ = obj.get("filter")
        if filter_ is not None:
            if not isinstance(filter_, list) or not all(isinstance(r, str) for r in filter_):
                raise DecodeError("'filter' must be a list of strings")

        port = obj.get("port")
        if port is not None and (isinstance(port, bool) or not isinstance(port, int)):
            raise DecodeError("'port' must be an integer")

        address = obj.get("address")
        if address is not None and not isinstance(address, str):
            raise DecodeError("'address' must be a string")

        return cls(
            type=msg_type,
            from_=sender,
            node=node,
            filter=filter_,
            data=obj.get("data"),
            port=port,
            address=address,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Envelope:
        """Deserialise one datagram body.  Raises ``DecodeError`` on bad input."""
        try:
            obj = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"not valid JSON: {exc}", data) from exc
        if not isinstance(obj, dict):
            raise DecodeError("datagram is not a JSON object", data)
        try:
            env = cls.from_dict(obj)
        except DecodeError as exc:
            raise DecodeError(exc.reason, data) from exc
        if not env.type:
            raise DecodeError("missing 'type'", data)
        return env


def encode_envelope(env: Envelope, sender_id: str) -> bytes:
    """Stamp *sender_id* into ``from`` and serialise."""
    return env.stamped(sender_id).to_bytes()


def decode_envelope(data: bytes) -> Envelope | DecodeError:
    """Decode one datagram without raising.

    Returns the ``DecodeError`` instead of the envelope when *data* is malformed.
    """
    try:
        return Envelope.from_bytes(data)
    except DecodeError as exc:
        return exc
