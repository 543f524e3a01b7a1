"""Event loops that run in their own threads, and a round-robin pool of them."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from reactornet.event_loop import EventLoop
from reactornet.worker_thread import WorkerThread

ThreadInitCallback = Callable[[EventLoop], None]


class EventLoopThread:
    """Owns one thread that creates and runs its own event loop."""

    def __init__(self, cb: Optional[ThreadInitCallback] = None, name: str = "") -> None:
        self.callback = cb
        self.exiting = False
        self._loop: Optional[EventLoop] = None
        self._cond = threading.Condition()
        self.thread = WorkerThread(self._thread_func, name)

    @property
    def loop(self) -> Optional[EventLoop]:
        with self._cond:
            return self._loop

    @property
    def name(self) -> str:
        return self.thread.name

    def start_loop(self) -> EventLoop:
        """Start the thread and return its loop once it exists."""
        self.thread.start()
        with self._cond:
            self._cond.wait_for(lambda: self._loop is not None)
            return self._loop

    def stop(self) -> None:
        """Ask the loop to quit and wait for the thread to end."""
        self.exiting = True
        with self._cond:
            loop = self._loop
        if loop is not None:
            loop.quit()
            self.thread.join()

    def _thread_func(self) -> None:
        loop = EventLoop()
        try:
            if self.callback is not None:
                self.callback(loop)
            with self._cond:
                self._loop = loop
                self._cond.notify_all()
            loop.loop()
        finally:
            with self._cond:
                self._loop = None
            loop.close()


class EventLoopThreadPool:
    """A base loop plus a set of loop threads handed out in turn."""

    def __init__(self, base_loop: EventLoop, name: str = "") -> None:
        self.base_loop = base_loop
        self.name = name
        self.started = False
        self.num_threads = 0
        self._next = 0
        self.threads: list[EventLoopThread] = []
        self._loops: list[EventLoop] = []

    def set_thread_num(self, num_threads: int) -> None:
        if num_threads < 0:
            raise ValueError("num_threads must not be negative")
        self.num_threads = num_threads

    def start(self, cb: Optional[ThreadInitCallback] = None) -> None:
        """Start every loop thread; with none, run ``cb`` on the base loop."""
        self.started = True
        for i in range(self.num_threads):
            thread = EventLoopThread(cb, f"{self.name}{i}")
            self.threads.append(thread)
            self._loops.append(thread.start_loop())
        if self.num_threads == 0 and cb is not None:
            cb(self.base_loop)

    def get_next_loop(self) -> EventLoop:
        """Return the next loop in round-robin order, or the base loop."""
        if not self._loops:
            return self.base_loop
        loop = self._loops[self._next]
        self._next = (self._next + 1) % len(self._loops)
        return loop

    def get_all_loops(self) -> list[EventLoop]:
        return list(self._loops) if self._loops else [self.base_loop]

    def stop(self) -> None:
        """Stop every loop thread."""
        for thread in self.threads:
            thread.stop()
        self.threads.clear()
        self._loops.clear()
        self._next = 0