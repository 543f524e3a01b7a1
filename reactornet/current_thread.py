"""Per-thread cached native thread id."""

from __future__ import annotations

import threading

_local = threading.local()


def tid() -> int:
    """Return the native id of the calling thread, cached per thread."""
    cached = getattr(_local, "tid", 0)
    if cached == 0:
        cached = threading.get_native_id()
        _local.tid = cached
    return cached