"""UDP datagram transport for udpnode.

The node core only relies on the small ``DatagramTransport`` contract:
bind to a port, hand every inbound datagram to one registered callback,
send datagrams fire-and-forget, and release the binding on close.

``UDPTransport`` implements it on asyncio: one non-blocking UDP socket with
broadcast enabled, and a single reader task that awaits the message callback
for each datagram before reading the next one, so arrival order is
processing order.
"""

from __future__ import annotations

import asyncio
import errno
import socket
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from loguru import logger

from udpnode.protocol import MAX_DATAGRAM_SIZE, Remote
from udpnode.resilience import call_handler, supervised_task

# (datagram, sender) -> None, sync or async.
DatagramHandler = Callable[[bytes, Remote], "Awaitable[None] | None"]
# Receives the transmit error, or None on success.
SendCompletion = Callable[[OSError | None], Any]
CloseCompletion = Callable[[], Any]


class DatagramTransport(ABC):
    """Minimal send/receive contract the node core is written against."""

    @abstractmethod
    def bind(self, port: int) -> int:
        """Start listening on *port* with broadcast enabled; return the bound port."""

    @abstractmethod
    def on_message(self, handler: DatagramHandler) -> None:
        """Register the callback that receives every inbound datagram."""

    @abstractmethod
    def send_datagram(
        self,
        data: bytes,
        address: str,
        port: int,
        completion: SendCompletion | None = None,
    ) -> None:
        """Transmit *data*; report the outcome only through *completion*."""

    @abstractmethod
    def close(self, completion: CloseCompletion | None = None) -> None:
        """Release the binding."""


def _notify(callback: Callable[..., Any], *args: Any) -> None:
    try:
        result = callback(*args)
    except Exception as exc:
        logger.opt(exception=exc).error("[UdpNode/Transport] callback raised: {!r}", exc)
        return
    if asyncio.iscoroutine(result):
        supervised_task(result, name="udpnode-callback")


class UDPTransport(DatagramTransport):
    """asyncio UDP transport.

    Parameters
    ----------
    host:
        Interface to bind on (default ``""``, all interfaces).
    recv_size:
        Receive buffer size per datagram.
    """

    def __init__(self, host: str = "", recv_size: int = MAX_DATAGRAM_SIZE) -> None:
        self.host = host
        self.recv_size = recv_size
        self._sock: socket.socket | None = None
        self._task: asyncio.Task | None = None
        self._handler: DatagramHandler | None = None

    @property
    def local_port(self) -> int | None:
        if self._sock is None:
            return None
        return self._sock.getsockname()[1]

    # -- lifecycle -----------------------------------------------------------

    def bind(self, port: int) -> int:
        """Bind a fresh socket on *port*, replacing any previous binding.

        Must be called from inside a running event loop.
        """
        asyncio.get_running_loop()
        if self._sock is not None:
            self._release()

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise

        self._sock = sock
        bound = sock.getsockname()[1]
        self._task = supervised_task(self._listen_loop(sock), name=f"udpnode-recv-{bound}")
        logger.info(f"[UdpNode/Transport] listening on {self.host or '0.0.0.0'}:{bound}")
        return bound

    def close(self, completion: CloseCompletion | None = None) -> None:
        self._release(completion)

    def _release(self, completion: CloseCompletion | None = None) -> None:
        sock, task = self._sock, self._task
        self._sock = None
        self._task = None

        def _finish(_: Any = None) -> None:
            if sock is not None:
                port = sock.getsockname()[1]
                sock.close()
                logger.info(f"[UdpNode/Transport] released port {port}")
            if completion is not None:
                _notify(completion)

        # Close the socket only after the reader stopped waiting on it.
        if task is not None and not task.done():
            task.cancel()
            task.add_done_callback(_finish)
        else:
            _finish()

    # -- receiving -----------------------------------------------------------

    def on_message(self, handler: DatagramHandler) -> None:
        self._handler = handler

    async def _listen_loop(self, sock: socket.socket) -> None:
        loop = asyncio.get_running_loop()
        while self._sock is sock:
            try:
                data, addr = await loop.sock_recvfrom(sock, self.recv_size)
            except OSError as exc:
                if self._sock is not sock:
                    break
                logger.debug(f"[UdpNode/Transport] receive error: {exc}")
                await asyncio.sleep(0.1)
                continue
            if self._handler is None:
                continue
            await call_handler(
                self._handler, data, Remote(addr[0], addr[1]), label="datagram handler"
            )

    # -- sending -------------------------------------------------------------

    def send_datagram(
        self,
        data: bytes,
        address: str,
        port: int,
        completion: SendCompletion | None = None,
    ) -> None:
        supervised_task(
            self._sendto(self._sock, data, (address, port), completion),
            name=f"udpnode-send-{address}:{port}",
        )

    async def _sendto(
        self,
        sock: socket.socket | None,
        data: bytes,
        dest: tuple[str, int],
        completion: SendCompletion | None,
    ) -> None:
        error: OSError | None = None
        if sock is None or sock.fileno() == -1:
            error = OSError(errno.EBADF, "transport is closed")
        else:
            try:
                await asyncio.get_running_loop().sock_sendto(sock, data, dest)
            except OSError as exc:
                error = exc
        if error is not None:
            logger.warning(f"[UdpNode/Transport] failed to send to {dest[0]}:{dest[1]}: {error}")
        if completion is not None:
            await call_handler(completion, error, label="send completion")
