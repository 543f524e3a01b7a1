"""Multi-loop TCP server that hands each accepted connection to a loop."""

from __future__ import annotations

import enum
import threading
from typing import Callable, Optional

from reactornet.acceptor import Acceptor
from reactornet.event_loop_thread import EventLoopThreadPool
from reactornet.inet_address import InetAddress
from reactornet.logger import log_error, log_fatal, log_info
from reactornet.tcp_connection import (
    ConnectionCallback,
    MessageCallback,
    TcpConnection,
    WriteCompleteCallback,
)

ThreadInitCallback = Callable[[object], None]

_CLOSE_TIMEOUT = 5.0


class ServerOption(enum.Enum):
    """Whether the listening socket should share its port."""

    NO_REUSE_PORT = 0
    REUSE_PORT = 1


class TcpServer:
    """Accepts connections in a base loop and serves them in a loop pool."""

    def __init__(
        self,
        loop,
        listen_addr: InetAddress,
        name: str,
        option: ServerOption = ServerOption.NO_REUSE_PORT,
    ) -> None:
        if loop is None:
            log_fatal("mainloop is null \n")
        self.loop = loop
        self.ip_port = listen_addr.to_ip_port()
        self.name = name
        self.acceptor = Acceptor(loop, listen_addr, option is ServerOption.REUSE_PORT)
        self.thread_pool = EventLoopThreadPool(loop, name)
        self.connection_callback: Optional[ConnectionCallback] = None
        self.message_callback: Optional[MessageCallback] = None
        self.write_complete_callback: Optional[WriteCompleteCallback] = None
        self.thread_init_callback: Optional[ThreadInitCallback] = None
        self.connections: dict[str, TcpConnection] = {}
        self._next_conn_id = 1
        self._started = 0
        self._start_lock = threading.Lock()
        self.acceptor.new_connection_callback = self._new_connection

    @property
    def listen_address(self) -> InetAddress:
        """The address actually bound, with the real port if 0 was asked for."""
        return self.acceptor.local_address

    def set_thread_num(self, number: int) -> None:
        """Set how many extra loop threads serve connections."""
        self.thread_pool.set_thread_num(number)

    def start(self) -> None:
        """Start the loop pool and begin listening; later calls do nothing."""
        with self._start_lock:
            first = self._started == 0
            self._started += 1
        if first:
            self.thread_pool.start(self.thread_init_callback)
            self.loop.run_in_loop(self.acceptor.listen)

    def close(self) -> None:
        """Destroy every connection, stop the pool and the acceptor.

        Call from the base loop's thread, or after the base loop has stopped.
        """
        waits = []
        for conn in list(self.connections.values()):
            done = threading.Event()

            def destroy(conn=conn, done=done) -> None:
                try:
                    conn.connect_destroyed()
                finally:
                    done.set()

            conn.loop.run_in_loop(destroy)
            waits.append(done)
        self.connections.clear()
        for done in waits:
            done.wait(_CLOSE_TIMEOUT)
        self.thread_pool.stop()
        self.acceptor.close()

    def _new_connection(self, sock, peer_addr: InetAddress) -> None:
        io_loop = self.thread_pool.get_next_loop()
        conn_name = f"{self.name}{self.ip_port}#{self._next_conn_id}"
        self._next_conn_id += 1
        log_info(
            "tcpserver::newConnection [%s]  new connection [%s] from %s \n",
            self.name, conn_name, peer_addr.to_ip_port(),
        )
        try:
            local_addr = InetAddress.from_sockaddr(sock.getsockname())
        except (OSError, ValueError, IndexError):
            log_error("sockets::getLocalAddr")
            local_addr = InetAddress()

        conn = TcpConnection(io_loop, conn_name, sock, local_addr, peer_addr)
        self.connections[conn_name] = conn
        conn.connection_callback = self.connection_callback
        conn.message_callback = self.message_callback
        conn.write_complete_callback = self.write_complete_callback
        conn.close_callback = self._remove_connection
        io_loop.run_in_loop(conn.connect_established)

    def _remove_connection(self, conn: TcpConnection) -> None:
        self.loop.run_in_loop(lambda: self._remove_connection_in_loop(conn))

    def _remove_connection_in_loop(self, conn: TcpConnection) -> None:
        log_info(
            "TcpServer::removeConnectionInLoop [%s] - connection %s \n",
            self.name, conn.name,
        )
        self.connections.pop(conn.name, None)
        conn.loop.queue_in_loop(conn.connect_destroyed)