"""Listening socket that hands accepted connections to a callback."""

from __future__ import annotations

import errno
import socket
from typing import Callable, Optional

from reactornet.channel import Channel
from reactornet.inet_address import InetAddress
from reactornet.logger import log_error, log_fatal
from reactornet.sockets import Socket

NewConnectionCallback = Callable[[socket.socket, InetAddress], None]


def create_nonblocking() -> socket.socket:
    """Create a non-blocking IPv4 TCP socket; failure is fatal."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except OSError as exc:
        log_fatal("listen socket create err:%d \n", exc.errno or 0)
    sock.setblocking(False)
    return sock


class Acceptor:
    """Accepts new TCP connections on behalf of an event loop."""

    def __init__(self, loop, listen_addr: InetAddress, reuseport: bool = False) -> None:
        self.loop = loop
        self.reuseport = reuseport
        self.listening = False
        self.new_connection_callback: Optional[NewConnectionCallback] = None
        self._raw = create_nonblocking()
        self.accept_socket = Socket(self._raw)
        try:
            self.accept_socket.set_reuse_addr(True)
            self.accept_socket.set_reuse_port(True)
            self.accept_socket.bind_address(listen_addr)
        except BaseException:
            self.accept_socket.close()
            raise
        self.channel = Channel(loop, self.accept_socket.fd())
        self.channel.read_callback = lambda _time: self._handle_read()
        self._closed = False

    def __enter__(self) -> "Acceptor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def local_address(self) -> InetAddress:
        """The address the listening socket is bound to."""
        return InetAddress.from_sockaddr(self._raw.getsockname())

    def listen(self) -> None:
        """Start listening and watch the socket for incoming connections."""
        self.listening = True
        self.accept_socket.listen()
        self.channel.enable_reading()

    def close(self) -> None:
        """Stop watching and close the listening socket."""
        if self._closed:
            return
        self._closed = True
        self.channel.disable_all()
        self.channel.remove()
        self.accept_socket.close()

    def _handle_read(self) -> None:
        try:
            conn, peer_addr = self.accept_socket.accept()
        except OSError as exc:
            log_error("accept err:%d \n", exc.errno or 0)
            if exc.errno == errno.EMFILE:
                log_error("sockfd reached limit!\n")
            return
        if self.new_connection_callback is not None:
            self.new_connection_callback(conn, peer_addr)
        else:
            conn.close()