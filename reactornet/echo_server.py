"""An echo server that replies once and then closes the connection."""

from __future__ import annotations

import argparse

from reactornet.buffer import Buffer
from reactornet.event_loop import EventLoop
from reactornet.inet_address import InetAddress
from reactornet.logger import log_info
from reactornet.tcp_connection import TcpConnection
from reactornet.tcp_server import TcpServer
from reactornet.timestamp import Timestamp


class EchoServer:
    """Echoes the first message of each connection back, then shuts down."""

    def __init__(self, loop, addr: InetAddress, name: str, threads: int = 3) -> None:
        self.loop = loop
        self.server = TcpServer(loop, addr, name)
        self.server.connection_callback = self._on_connection
        self.server.message_callback = self._on_message
        self.server.set_thread_num(threads)

    def start(self) -> None:
        self.server.start()

    def _on_connection(self, conn: TcpConnection) -> None:
        if conn.connected():
            log_info("Conn Up: %s", conn.peer_address.to_ip_port())
        else:
            log_info("Conn Down: %s", conn.peer_address.to_ip_port())

    def _on_message(self, conn: TcpConnection, buf: Buffer, time: Timestamp) -> None:
        conn.send(buf.retrieve_all_as_bytes())
        conn.shutdown()


def main(argv=None) -> int:
    """Run the echo server until interrupted."""
    parser = argparse.ArgumentParser(
        prog="reactornet-echo", description="Run a one-shot TCP echo server."
    )
    parser.add_argument("--port", type=int, default=8000, help="port to listen on")
    parser.add_argument("--threads", type=int, default=3, help="number of I/O threads")
    args = parser.parse_args(argv)

    addr = InetAddress(args.port)
    loop = EventLoop()
    try:
        server = EchoServer(loop, addr, "EchoServer-01", threads=args.threads)
        server.start()
        try:
            loop.loop()
        except KeyboardInterrupt:
            pass
        finally:
            server.server.close()
    finally:
        loop.close()
    return 0