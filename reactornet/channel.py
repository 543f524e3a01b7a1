"""A file descriptor together with its interest set and event callbacks."""

from __future__ import annotations

import weakref
from typing import Callable, Optional

from reactornet.timestamp import Timestamp

ReadEventCallback = Callable[[Timestamp], None]
EventCallback = Callable[[], None]


class Channel:
    """Binds one fd to an event loop and dispatches ready events to callbacks.

    The channel does not own the fd; it only records which events are of
    interest and which callbacks handle them.
    """

    EVENT_IN = 0x001
    EVENT_PRI = 0x002
    EVENT_OUT = 0x004
    EVENT_ERR = 0x008
    EVENT_HUP = 0x010

    NONE_EVENT = 0
    READ_EVENT = EVENT_IN | EVENT_PRI
    WRITE_EVENT = EVENT_OUT

    def __init__(self, loop, fd: int) -> None:
        self.loop = loop
        self.fd = fd
        self.events = self.NONE_EVENT
        self.revents = 0
        # Registration state kept by the poller; -1 means never added.
        self.index = -1
        self.read_callback: Optional[ReadEventCallback] = None
        self.write_callback: Optional[EventCallback] = None
        self.close_callback: Optional[EventCallback] = None
        self.error_callback: Optional[EventCallback] = None
        self._tie: Optional[weakref.ref] = None

    def __repr__(self) -> str:
        return f"Channel(fd={self.fd}, events={self.events}, index={self.index})"

    def tie(self, obj) -> None:
        """Skip event handling once ``obj`` has been garbage collected."""
        self._tie = weakref.ref(obj)

    def handle_event(self, receive_time: Timestamp) -> None:
        """Dispatch the events last reported by the poller."""
        if self._tie is not None:
            guard = self._tie()
            if guard is None:
                return
            self._handle_event_with_guard(receive_time)
            del guard
        else:
            self._handle_event_with_guard(receive_time)

    def _handle_event_with_guard(self, receive_time: Timestamp) -> None:
        revents = self.revents
        if revents & self.EVENT_HUP and not revents & self.EVENT_IN:
            if self.close_callback:
                self.close_callback()
        if revents & self.EVENT_ERR:
            if self.error_callback:
                self.error_callback()
        if revents & (self.EVENT_IN | self.EVENT_PRI):
            if self.read_callback:
                self.read_callback(receive_time)
        if revents & self.EVENT_OUT:
            if self.write_callback:
                self.write_callback()

    def remove(self) -> None:
        """Ask the owning loop to stop watching this channel."""
        self.loop.remove_channel(self)

    def _update(self) -> None:
        self.loop.update_channel(self)

    def enable_reading(self) -> None:
        self.events |= self.READ_EVENT
        self._update()

    def disable_reading(self) -> None:
        self.events &= ~self.READ_EVENT
        self._update()

    def enable_writing(self) -> None:
        self.events |= self.WRITE_EVENT
        self._update()

    def disable_writing(self) -> None:
        self.events &= ~self.WRITE_EVENT
        self._update()

    def disable_all(self) -> None:
        self.events = self.NONE_EVENT
        self._update()

    def is_none_event(self) -> bool:
        return self.events == self.NONE_EVENT

    def is_writing(self) -> bool:
        return bool(self.events & self.WRITE_EVENT)

    def is_reading(self) -> bool:
        return bool(self.events & self.READ_EVENT)