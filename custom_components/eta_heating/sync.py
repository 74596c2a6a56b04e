"""
Cross-view snapshot sharing.

Several views of the same controller (config entries, or anything else that
holds a coordinator) can share one poll result instead of each polling on its
own. Delivery is best effort, at most once per publish and unordered with
respect to the receiver's own polling; a view that misses a message simply
catches up at its next scheduled poll.

Transport and semantics are kept apart:
- SnapshotChannel subclasses only move SyncMessage objects.
- SnapshotSync picks the first available channel of its fallback chain,
  stamps outgoing messages with its origin and drops its own echoes.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Callable

from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_connect, async_dispatcher_send

from .models import Snapshot

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SyncMessage:
    """A snapshot published by one view."""

    origin: str   # publishing view
    source: str   # controller the snapshot was read from
    snapshot: Snapshot


class SnapshotChannel:
    """Base class for the transports a SnapshotSync can use."""

    name = "channel"

    @property
    def available(self) -> bool:
        return True

    def post(self, message: SyncMessage) -> None:
        raise NotImplementedError

    def subscribe(self, callback: Callable[[SyncMessage], None]) -> Callable[[], None]:
        raise NotImplementedError


class DispatcherChannel(SnapshotChannel):
    """Broadcast over a Home Assistant dispatcher signal."""

    name = "dispatcher"

    def __init__(self, hass: HomeAssistant | None, signal: str) -> None:
        self._hass = hass
        self._signal = signal

    @property
    def available(self) -> bool:
        return self._hass is not None

    def post(self, message: SyncMessage) -> None:
        async_dispatcher_send(self._hass, self._signal, message)

    def subscribe(self, callback: Callable[[SyncMessage], None]) -> Callable[[], None]:
        return async_dispatcher_connect(self._hass, self._signal, callback)


class SharedSnapshots:
    """
    Snapshot writes shared by every view in one Home Assistant instance.

    Listeners get each written message with the writer's origin and source,
    so receivers can drop their own writes and snapshots of other controllers.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[SyncMessage], None]] = []

    def write(self, message: SyncMessage) -> None:
        for listener in list(self._listeners):
            listener(message)

    def add_listener(self, listener: Callable[[SyncMessage], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener


class StorageChannel(SnapshotChannel):
    """
    Write snapshots to SharedSnapshots and observe the writes of other views.

    Fallback for when no broadcast is available. Every view set up in the
    same Home Assistant instance holds the same SharedSnapshots.
    """

    name = "storage"

    def __init__(self, shared: SharedSnapshots) -> None:
        self._shared = shared

    def post(self, message: SyncMessage) -> None:
        self._shared.write(message)

    def subscribe(self, callback: Callable[[SyncMessage], None]) -> Callable[[], None]:
        return self._shared.add_listener(callback)


class SnapshotSync:
    """Publish snapshots to, and receive snapshots from, other views."""

    def __init__(self, origin: str, channels: list[SnapshotChannel]) -> None:
        self.origin = origin
        self._channels = list(channels)

    @property
    def channel(self) -> SnapshotChannel | None:
        """The first available channel of the fallback chain."""
        for channel in self._channels:
            if channel.available:
                return channel
        return None

    def publish(self, source: str, snapshot: Snapshot) -> None:
        channel = self.channel
        if channel is None:
            _LOGGER.debug("No sync channel available, snapshot not shared")
            return
        channel.post(SyncMessage(origin=self.origin, source=source, snapshot=dict(snapshot)))

    def on_receive(self, handler: Callable[[SyncMessage], None]) -> Callable[[], None]:
        """
        Call handler with every message published by another view.

        Returns a function that unsubscribes the handler.
        """
        channel = self.channel
        if channel is None:
            _LOGGER.debug("No sync channel available, not listening for snapshots")
            return lambda: None

        _LOGGER.debug("Listening for shared snapshots on %s channel", channel.name)

        def _filtered(message: SyncMessage) -> None:
            if message.origin == self.origin:
                return
            handler(message)

        return channel.subscribe(_filtered)
