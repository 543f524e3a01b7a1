"""Growable byte buffer with prepend space, read and write cursors."""

from __future__ import annotations

import os

_EXTRA_READ = 65536


class Buffer:
    """Byte buffer laid out as prependable | readable | writable regions."""

    CHEAP_PREPEND = 8
    INITIAL_SIZE = 1024

    def __init__(self, initial_size: int = INITIAL_SIZE) -> None:
        if initial_size < 0:
            raise ValueError("initial_size must not be negative")
        self._buffer = bytearray(self.CHEAP_PREPEND + initial_size)
        self._reader = self.CHEAP_PREPEND
        self._writer = self.CHEAP_PREPEND

    def __len__(self) -> int:
        return self.readable_bytes()

    def readable_bytes(self) -> int:
        return self._writer - self._reader

    def writable_bytes(self) -> int:
        return len(self._buffer) - self._writer

    def prependable_bytes(self) -> int:
        return self._reader

    def peek(self) -> bytes:
        """Return the readable bytes without consuming them."""
        return bytes(self._buffer[self._reader:self._writer])

    def retrieve(self, length: int) -> None:
        """Consume ``length`` bytes; consuming all or more resets the buffer."""
        if length < 0:
            raise ValueError("length must not be negative")
        if length < self.readable_bytes():
            self._reader += length
        else:
            self.retrieve_all()

    def retrieve_all(self) -> None:
        self._reader = self._writer = self.CHEAP_PREPEND

    def retrieve_all_as_bytes(self) -> bytes:
        return self.retrieve_as_bytes(self.readable_bytes())

    def retrieve_as_bytes(self, length: int) -> bytes:
        """Consume and return up to ``length`` readable bytes."""
        if length < 0:
            raise ValueError("length must not be negative")
        result = bytes(self._buffer[self._reader:self._reader + length])
        self.retrieve(length)
        return result

    def ensure_writable_bytes(self, length: int) -> None:
        if self.writable_bytes() < length:
            self._make_space(length)

    def append(self, data) -> None:
        """Append bytes-like ``data`` after the readable region."""
        data = memoryview(data).cast("B")
        length = len(data)
        self.ensure_writable_bytes(length)
        self._buffer[self._writer:self._writer + length] = data
        self._writer += length

    def read_fd(self, fd: int) -> int:
        """Read once from ``fd`` into the buffer; return the byte count."""
        writable = self.writable_bytes()
        extra = bytearray(_EXTRA_READ)
        if hasattr(os, "readv"):
            view = memoryview(self._buffer)[self._writer:]
            try:
                targets = [view, extra] if writable < len(extra) else [view]
                n = os.readv(fd, targets)
            finally:
                view.release()
        else:
            chunk = os.read(fd, writable + (len(extra) if writable < len(extra) else 0))
            n = len(chunk)
            head = min(n, writable)
            self._buffer[self._writer:self._writer + head] = chunk[:head]
            extra[: n - head] = chunk[head:]
        if n <= writable:
            self._writer += n
        else:
            self._writer = len(self._buffer)
            self.append(extra[: n - writable])
        return n

    def write_fd(self, fd: int) -> int:
        """Write the readable bytes to ``fd`` once; return the count written."""
        return os.write(fd, self.peek())

    def _make_space(self, length: int) -> None:
        if self.writable_bytes() + self.prependable_bytes() < length + self.CHEAP_PREPEND:
            self._buffer.extend(bytes(self._writer + length - len(self._buffer)))
        else:
            readable = self.readable_bytes()
            start = self.CHEAP_PREPEND
            self._buffer[start:start + readable] = self._buffer[self._reader:self._writer]
            self._reader = start
            self._writer = start + readable