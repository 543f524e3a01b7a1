"""I/O multiplexing behind a small poller interface."""

from __future__ import annotations

import abc
import selectors

from reactornet.channel import Channel
from reactornet.logger import log_debug, log_error, log_info
from reactornet.timestamp import Timestamp


class Poller(abc.ABC):
    """Watches channels for readiness on behalf of one event loop."""

    NEW = -1
    ADDED = 1
    DELETED = 2

    def __init__(self, loop) -> None:
        self.owner_loop = loop
        self.channels: dict[int, Channel] = {}

    @abc.abstractmethod
    def poll(self, timeout_ms: int) -> tuple[Timestamp, list[Channel]]:
        """Wait for events; return the wake-up time and the active channels."""

    @abc.abstractmethod
    def update_channel(self, channel: Channel) -> None:
        """Register or modify the interest set of ``channel``."""

    @abc.abstractmethod
    def remove_channel(self, channel: Channel) -> None:
        """Forget ``channel`` entirely."""

    def has_channel(self, channel: Channel) -> bool:
        return self.channels.get(channel.fd) is channel


class SelectorPoller(Poller):
    """Poller built on the platform's best ``selectors`` implementation."""

    def __init__(self, loop) -> None:
        super().__init__(loop)
        self._selector = selectors.DefaultSelector()

    def close(self) -> None:
        self._selector.close()

    def poll(self, timeout_ms: int) -> tuple[Timestamp, list[Channel]]:
        log_info("func=poll => fd total count:%d\n", len(self.channels))
        timeout = None if timeout_ms < 0 else timeout_ms / 1000
        try:
            ready = self._selector.select(timeout)
        except OSError as exc:
            log_error("SelectorPoller.poll() error: %s", exc)
            return Timestamp.now(), []
        now = Timestamp.now()
        active = []
        for key, mask in ready:
            channel = key.data
            revents = 0
            if mask & selectors.EVENT_READ:
                revents |= Channel.EVENT_IN
            if mask & selectors.EVENT_WRITE:
                revents |= Channel.EVENT_OUT
            channel.revents = revents
            active.append(channel)
        if active:
            log_info("%d events happened\n", len(active))
        else:
            log_debug("poll timeout \n")
        return now, active

    def update_channel(self, channel: Channel) -> None:
        index = channel.index
        log_info(
            "func = update_channel fd=%d events=%d index=%d \n",
            channel.fd, channel.events, index,
        )
        if index in (self.NEW, self.DELETED):
            if index == self.NEW:
                self.channels[channel.fd] = channel
            channel.index = self.ADDED
            self._apply(channel, remove=False)
        elif channel.is_none_event():
            self._apply(channel, remove=True)
            channel.index = self.DELETED
        else:
            self._apply(channel, remove=False)

    def remove_channel(self, channel: Channel) -> None:
        fd = channel.fd
        self.channels.pop(fd, None)
        log_info("func = remove_channel fd=%d\n", fd)
        if channel.index == self.ADDED:
            self._apply(channel, remove=True)
        channel.index = self.NEW

    @staticmethod
    def _selector_mask(events: int) -> int:
        mask = 0
        if events & Channel.READ_EVENT:
            mask |= selectors.EVENT_READ
        if events & Channel.WRITE_EVENT:
            mask |= selectors.EVENT_WRITE
        return mask

    def _apply(self, channel: Channel, *, remove: bool) -> None:
        mask = self._selector_mask(channel.events)
        try:
            registered = channel.fd in self._selector.get_map()
            if remove or mask == 0:
                if registered:
                    self._selector.unregister(channel.fd)
            elif registered:
                self._selector.modify(channel.fd, mask, channel)
            else:
                self._selector.register(channel.fd, mask, channel)
        except (OSError, ValueError, KeyError) as exc:
            if remove:
                log_error("selector del error:%s\n", exc)
            else:
                log_error("selector add/mod error:%s\n", exc)


def new_default_poller(loop) -> Poller:
    """Return the poller used by event loops by default."""
    return SelectorPoller(loop)