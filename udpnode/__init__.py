"""Peer discovery and direct messaging between processes on a LAN.

Nodes talk over connectionless UDP datagrams carrying one JSON envelope each.
A node can broadcast a discovery request (optionally filtered by role), ping a
known peer directly, and exchange application-defined message types.  Every
node answers discovery requests and pings of interest with its identity.
"""

from udpnode.errors import (
    DecodeError,
    InvalidArgumentError,
    MissingAddressError,
    MissingTypeError,
    NotConfiguredError,
    UdpNodeError,
)
from udpnode.node import UdpNode
from udpnode.protocol import Envelope, MsgType, Remote

__all__ = [
    "DecodeError",
    "Envelope",
    "InvalidArgumentError",
    "MissingAddressError",
    "MissingTypeError",
    "MsgType",
    "NotConfiguredError",
    "Remote",
    "UdpNode",
    "UdpNodeError",
]
