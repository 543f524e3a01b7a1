"""Named worker threads that report their native id once running."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from reactornet import current_thread

ThreadFunc = Callable[[], None]


class WorkerThread:
    """A thread that runs ``func`` and knows its native id once started."""

    _num_created = 0
    _count_lock = threading.Lock()

    def __init__(self, func: Optional[ThreadFunc] = None, name: str = "") -> None:
        self.func = func
        self.started = False
        self.joined = False
        self.tid = 0
        self._thread: Optional[threading.Thread] = None
        with WorkerThread._count_lock:
            WorkerThread._num_created += 1
            number = WorkerThread._num_created
        self.name = name or f"thread {number}"

    def __repr__(self) -> str:
        return f"WorkerThread(name={self.name!r}, tid={self.tid})"

    @classmethod
    def num_created(cls) -> int:
        """Return how many worker threads have been constructed."""
        return WorkerThread._num_created

    def start(self) -> None:
        """Start the thread and wait until it has recorded its id."""
        if self.started:
            raise RuntimeError(f"{self.name} already started")
        self.started = True
        ready = threading.Event()

        def run() -> None:
            self.tid = current_thread.tid()
            ready.set()
            if self.func is not None:
                self.func()

        self._thread = threading.Thread(target=run, name=self.name, daemon=True)
        self._thread.start()
        ready.wait()

    def join(self) -> None:
        """Wait for the thread to finish."""
        if self._thread is None:
            raise RuntimeError(f"{self.name} was never started")
        self.joined = True
        self._thread.join()