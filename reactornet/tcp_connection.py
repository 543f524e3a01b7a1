"""One established TCP connection driven by an event loop."""

from __future__ import annotations

import enum
import socket
from typing import Callable, Optional

from reactornet.buffer import Buffer
from reactornet.channel import Channel
from reactornet.inet_address import InetAddress
from reactornet.logger import log_error, log_fatal, log_info
from reactornet.sockets import Socket
from reactornet.timestamp import Timestamp

ConnectionCallback = Callable[["TcpConnection"], None]
CloseCallback = Callable[["TcpConnection"], None]
WriteCompleteCallback = Callable[["TcpConnection"], None]
MessageCallback = Callable[["TcpConnection", Buffer, Timestamp], None]
HighWaterMarkCallback = Callable[["TcpConnection", int], None]

DEFAULT_HIGH_WATER_MARK = 64 * 1024 * 1024


class ConnectionState(enum.Enum):
    """Life-cycle stage of a connection."""

    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    DISCONNECTING = 3


class TcpConnection:
    """A connected socket with input and output buffers and user callbacks.

    All I/O happens in the thread of ``loop``; :meth:`send` and
    :meth:`shutdown` may be called from any thread.
    """

    def __init__(
        self,
        loop,
        name: str,
        sock,
        local_addr: InetAddress,
        peer_addr: InetAddress,
    ) -> None:
        if loop is None:
            log_fatal("tcpconnection loop is null \n")
        if isinstance(sock, int):
            sock = socket.socket(fileno=sock)
        sock.setblocking(False)
        self.loop = loop
        self.name = name
        self.local_address = local_addr
        self.peer_address = peer_addr
        self.reading = True
        self._state = ConnectionState.CONNECTING
        self._destroyed = False
        self._sock = sock
        self.socket = Socket(sock)
        self.channel = Channel(loop, sock.fileno())
        self.input_buffer = Buffer()
        self.output_buffer = Buffer()
        self.high_water_mark = DEFAULT_HIGH_WATER_MARK

        self.connection_callback: Optional[ConnectionCallback] = None
        self.message_callback: Optional[MessageCallback] = None
        self.write_complete_callback: Optional[WriteCompleteCallback] = None
        self.high_water_mark_callback: Optional[HighWaterMarkCallback] = None
        self.close_callback: Optional[CloseCallback] = None

        self.channel.read_callback = self._handle_read
        self.channel.write_callback = self._handle_write
        self.channel.close_callback = self._handle_close
        self.channel.error_callback = self._handle_error

        log_info("Tcpconnection::ctor[%s]at fd=%d\n", name, self.channel.fd)

    def __repr__(self) -> str:
        return f"TcpConnection(name={self.name!r}, state={self._state.name})"

    @property
    def state(self) -> ConnectionState:
        return self._state

    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def set_high_water_mark_callback(
        self, cb: Optional[HighWaterMarkCallback], high_water_mark: int
    ) -> None:
        """Call ``cb`` when pending output first reaches ``high_water_mark``."""
        self.high_water_mark_callback = cb
        self.high_water_mark = high_water_mark

    def shutdown(self) -> None:
        """Close the write half once all pending output has been sent."""
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTING
            self.loop.run_in_loop(self._shutdown_in_loop)

    def connect_established(self) -> None:
        """Start reading; called once in the loop thread after accept."""
        self._state = ConnectionState.CONNECTED
        self.channel.tie(self)
        self.channel.enable_reading()
        if self.connection_callback is not None:
            self.connection_callback(self)

    def connect_destroyed(self) -> None:
        """Stop watching the socket and close it; called in the loop thread."""
        if self._destroyed:
            return
        self._destroyed = True
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTED
            self.channel.disable_all()
            if self.connection_callback is not None:
                self.connection_callback(self)
        self.channel.remove()
        self.socket.close()

    def send(self, data) -> None:
        """Send ``data`` (bytes-like or str, encoded as UTF-8)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        else:
            data = bytes(data)
        if self._state is not ConnectionState.CONNECTED:
            return
        if self.loop.is_in_loop_thread():
            self._send_in_loop(data)
        else:
            self.loop.run_in_loop(lambda: self._send_in_loop(data))

    def _send_in_loop(self, data: bytes) -> None:
        if self._state is ConnectionState.DISCONNECTING:
            log_error("disconnecting,give up writing")
            return
        if self._state is ConnectionState.DISCONNECTED:
            log_error("disconnected,give up writing")
            return
        nwrote = 0
        remaining = len(data)
        fault = False
        if not self.channel.is_writing() and self.output_buffer.readable_bytes() == 0:
            try:
                nwrote = self._sock.send(data)
            except BlockingIOError:
                nwrote = 0
            except (BrokenPipeError, ConnectionResetError) as exc:
                log_error("tcpconnection::sendinloop %s", exc)
                nwrote = 0
                fault = True
            except OSError as exc:
                log_error("tcpconnection::sendinloop %s", exc)
                nwrote = 0
            else:
                remaining = len(data) - nwrote
                callback = self.write_complete_callback
                if remaining == 0 and callback is not None:
                    self.loop.queue_in_loop(lambda: callback(self))

        if fault or remaining <= 0:
            return
        old_len = self.output_buffer.readable_bytes()
        callback = self.high_water_mark_callback
        if (
            callback is not None
            and old_len + remaining >= self.high_water_mark
            and old_len < self.high_water_mark
        ):
            total = old_len + remaining
            self.loop.queue_in_loop(lambda: callback(self, total))
        self.output_buffer.append(memoryview(data)[nwrote:])
        if not self.channel.is_writing():
            self.channel.enable_writing()

    def _shutdown_in_loop(self) -> None:
        if not self.channel.is_writing():
            self.socket.shutdown_write()

    def _handle_read(self, receive_time: Timestamp) -> None:
        try:
            n = self.input_buffer.read_fd(self.channel.fd)
        except BlockingIOError:
            return
        except OSError as exc:
            log_error("tcpconnection::handleRead %s", exc)
            self._handle_error()
            return
        if n > 0:
            if self.message_callback is not None:
                self.message_callback(self, self.input_buffer, receive_time)
        else:
            self._handle_close()

    def _handle_write(self) -> None:
        if not self.channel.is_writing():
            log_error("tcpconnection fd = %d is down,no more writing\n", self.channel.fd)
            return
        try:
            n = self._sock.send(self.output_buffer.peek())
        except BlockingIOError:
            return
        except OSError as exc:
            log_error("tcpconnection::handleWrite %s", exc)
            return
        if n <= 0:
            log_error("tcpconnection::handleWrite")
            return
        self.output_buffer.retrieve(n)
        if self.output_buffer.readable_bytes() == 0:
            self.channel.disable_writing()
            callback = self.write_complete_callback
            if callback is not None:
                self.loop.queue_in_loop(lambda: callback(self))
            if self._state is ConnectionState.DISCONNECTING:
                self._shutdown_in_loop()

    def _handle_close(self) -> None:
        log_info("fd=%d, state=%s\n", self.channel.fd, self._state.name)
        self._state = ConnectionState.DISCONNECTED
        self.channel.disable_all()
        if self.connection_callback is not None:
            self.connection_callback(self)
        if self.close_callback is not None:
            self.close_callback(self)

    def _handle_error(self) -> None:
        try:
            err = self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            err = exc.errno or 0
        log_error("tcpconnection::handleError name%s - so_error%d \n", self.name, err)