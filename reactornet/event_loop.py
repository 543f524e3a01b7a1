"""One-loop-per-thread reactor."""

from __future__ import annotations

import socket
import sys
import threading
from typing import Callable

from reactornet import current_thread
from reactornet.channel import Channel
from reactornet.logger import log_debug, log_error, log_fatal, log_info
from reactornet.poller import new_default_poller
from reactornet.timestamp import Timestamp

_POLL_TIME_MS = 10000
_WAKEUP_TOKEN = (1).to_bytes(8, sys.byteorder)

_thread_state = threading.local()

Functor = Callable[[], None]


class EventLoop:
    """Polls channels and runs queued callbacks in the thread that created it."""

    def __init__(self) -> None:
        self.thread_id = current_thread.tid()
        log_debug("EventLoop created %r in thread %d \n", self, self.thread_id)
        existing = getattr(_thread_state, "loop", None)
        if existing is not None:
            log_fatal(
                "Another loop %r exists in this thread %d \n", existing, self.thread_id
            )
        self.looping = False
        self._quit = False
        self._calling_pending = False
        self._closed = False
        self.poll_return_time = Timestamp()
        self._pending: list[Functor] = []
        self._mutex = threading.Lock()
        self._poller = new_default_poller(self)
        self._wakeup_reader, self._wakeup_writer = socket.socketpair()
        self._wakeup_reader.setblocking(False)
        self._wakeup_writer.setblocking(False)
        _thread_state.loop = self
        self._wakeup_channel = Channel(self, self._wakeup_reader.fileno())
        self._wakeup_channel.read_callback = lambda _time: self._handle_read()
        self._wakeup_channel.enable_reading()

    def __enter__(self) -> "EventLoop":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def loop(self) -> None:
        """Run until :meth:`quit` is called."""
        self.looping = True
        self._quit = False
        log_info("eventloop %r start looping \n", self)
        try:
            while not self._quit:
                self.poll_return_time, active = self._poller.poll(_POLL_TIME_MS)
                for channel in active:
                    channel.handle_event(self.poll_return_time)
                self._do_pending_functors()
        finally:
            log_info("eventloop %r stop looping \n", self)
            self.looping = False

    def quit(self) -> None:
        """Stop the loop after the current iteration; safe from any thread."""
        self._quit = True
        if not self.is_in_loop_thread():
            self.wakeup()

    def run_in_loop(self, cb: Functor) -> None:
        """Run ``cb`` now if called from the loop thread, else queue it."""
        if self.is_in_loop_thread():
            cb()
        else:
            self.queue_in_loop(cb)

    def queue_in_loop(self, cb: Functor) -> None:
        """Queue ``cb`` to run in the loop thread after the next poll."""
        with self._mutex:
            self._pending.append(cb)
        if not self.is_in_loop_thread() or self._calling_pending:
            self.wakeup()

    def wakeup(self) -> None:
        """Interrupt a blocked poll."""
        try:
            sent = self._wakeup_writer.send(_WAKEUP_TOKEN)
        except BlockingIOError:
            # The pipe is full, so a wake-up is already pending.
            return
        except OSError as exc:
            log_error("eventloop::wakeup() failed: %s\n", exc)
            return
        if sent != len(_WAKEUP_TOKEN):
            log_error("eventloop::wakeup() writes %d bytes instead of 8\n", sent)

    def update_channel(self, channel: Channel) -> None:
        self._poller.update_channel(channel)

    def remove_channel(self, channel: Channel) -> None:
        self._poller.remove_channel(channel)

    def has_channel(self, channel: Channel) -> bool:
        return self._poller.has_channel(channel)

    def is_in_loop_thread(self) -> bool:
        return self.thread_id == current_thread.tid()

    def close(self) -> None:
        """Release the wake-up channel, sockets and poller."""
        if self._closed:
            return
        self._closed = True
        self._wakeup_channel.disable_all()
        self._wakeup_channel.remove()
        self._wakeup_reader.close()
        self._wakeup_writer.close()
        self._poller.close()
        if getattr(_thread_state, "loop", None) is self:
            _thread_state.loop = None

    def _handle_read(self) -> None:
        try:
            data = self._wakeup_reader.recv(65536)
        except BlockingIOError:
            data = b""
        if len(data) < len(_WAKEUP_TOKEN):
            log_error("eventloop::handleRead() reads %d bytes instead of 8", len(data))

    def _do_pending_functors(self) -> None:
        self._calling_pending = True
        try:
            with self._mutex:
                functors, self._pending = self._pending, []
            for functor in functors:
                functor()
        finally:
            self._calling_pending = False