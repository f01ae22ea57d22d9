"""Error taxonomy for udpnode.

Errors raised by the send family and registration calls are synchronous and
abort the call before anything reaches the transport.  ``DecodeError`` never
escapes the receive path: the dispatcher logs it and drops the datagram.
"""

from __future__ import annotations


class UdpNodeError(Exception):
    """Base class for every error raised by udpnode."""


class NotConfiguredError(UdpNodeError):
    """A send-family operation was invoked before ``configure``."""

    def __init__(self, operation: str = "send") -> None:
        super().__init__(
            f"Node is not configured: call configure(...) before {operation}()."
        )
        self.operation = operation


class InvalidArgumentError(UdpNodeError, ValueError):
    """A caller-supplied argument is empty, of the wrong type or out of range."""


class MissingAddressError(InvalidArgumentError):
    """``ping`` was called without a destination address."""

    def __init__(self) -> None:
        super().__init__("Missing required argument 'address' for ping().")


class MissingTypeError(InvalidArgumentError):
    """``send`` was called with an envelope that has no ``type``."""

    def __init__(self) -> None:
        super().__init__("Missing envelope 'type' when calling send().")


class DecodeError(UdpNodeError):
    """An inbound datagram is not a well-formed envelope."""

    def __init__(self, reason: str, raw: bytes = b"") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw = raw
