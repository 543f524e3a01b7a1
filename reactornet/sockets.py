"""Thin owner of a TCP socket with server-side helpers."""

from __future__ import annotations

import socket

from reactornet.inet_address import InetAddress
from reactornet.logger import log_error, log_fatal

_BACKLOG = 1024


class Socket:
    """Owns a socket and closes it when done."""

    def __init__(self, sock) -> None:
        if isinstance(sock, int):
            sock = socket.socket(fileno=sock)
        self._sock = sock

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fd(self) -> int:
        return self._sock.fileno()

    def bind_address(self, localaddr: InetAddress) -> None:
        """Bind to ``localaddr``; failure is fatal."""
        try:
            self._sock.bind(localaddr.sockaddr())
        except OSError:
            log_fatal("bind socket:%d fail\n", self.fd())

    def listen(self) -> None:
        """Start listening; failure is fatal."""
        try:
            self._sock.listen(_BACKLOG)
        except OSError:
            log_fatal("listen socket:%d fail\n", self.fd())

    def accept(self) -> tuple:
        """Accept a connection as a non-blocking socket plus its peer address."""
        conn, addr = self._sock.accept()
        conn.setblocking(False)
        return conn, InetAddress.from_sockaddr(addr)

    def shutdown_write(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_WR)
        except OSError:
            log_error("shutdownWrite error")

    def set_tcp_no_delay(self, on: bool) -> None:
        self._set_option(socket.IPPROTO_TCP, socket.TCP_NODELAY, on)

    def set_reuse_addr(self, on: bool) -> None:
        self._set_option(socket.SOL_SOCKET, socket.SO_REUSEADDR, on)

    def set_reuse_port(self, on: bool) -> None:
        option = getattr(socket, "SO_REUSEPORT", None)
        if option is not None:
            self._set_option(socket.SOL_SOCKET, option, on)

    def set_keep_alive(self, on: bool) -> None:
        self._set_option(socket.SOL_SOCKET, socket.SO_KEEPALIVE, on)

    def close(self) -> None:
        self._sock.close()

    def _set_option(self, level: int, name: int, on: bool) -> None:
        self._sock.setsockopt(level, name, 1 if on else 0)