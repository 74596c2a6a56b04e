"""
Tests for cross-view snapshot sharing: channel selection and fallback,
origin filtering, the dispatcher transport and the storage transport.
"""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from custom_components.eta_heating.const import SIGNAL_SNAPSHOT
from custom_components.eta_heating.sync import (
    DispatcherChannel,
    SharedSnapshots,
    SnapshotChannel,
    SnapshotSync,
    StorageChannel,
    SyncMessage,
)

from .test_common import make_snapshot


class LoopbackChannel(SnapshotChannel):
    """In-process channel delivering every post to every subscriber."""

    name = "loopback"

    def __init__(self, available: bool = True) -> None:
        self._available = available
        self.subscribers = []
        self.posted = []

    @property
    def available(self) -> bool:
        return self._available

    def post(self, message):
        self.posted.append(message)
        for callback in list(self.subscribers):
            callback(message)

    def subscribe(self, callback):
        self.subscribers.append(callback)
        return lambda: self.subscribers.remove(callback)


class TestSnapshotSync(unittest.TestCase):

    def test_other_view_receives_published_snapshot(self):
        channel = LoopbackChannel()
        view_a = SnapshotSync("a", [channel])
        view_b = SnapshotSync("b", [channel])
        received = []
        view_b.on_receive(received.append)

        snapshot = make_snapshot()
        view_a.publish("http://eta", snapshot)

        self.assertEqual(received, [SyncMessage(origin="a", source="http://eta", snapshot=snapshot)])

    def test_own_messages_are_ignored(self):
        channel = LoopbackChannel()
        view_a = SnapshotSync("a", [channel])
        received = []
        view_a.on_receive(received.append)

        view_a.publish("http://eta", make_snapshot())

        self.assertEqual(received, [])

    def test_unsubscribe_stops_delivery(self):
        channel = LoopbackChannel()
        view_a = SnapshotSync("a", [channel])
        view_b = SnapshotSync("b", [channel])
        received = []
        unsubscribe = view_b.on_receive(received.append)
        unsubscribe()

        view_a.publish("http://eta", make_snapshot())
        self.assertEqual(received, [])

    def test_first_available_channel_is_used(self):
        primary = LoopbackChannel()
        fallback = LoopbackChannel()
        sync = SnapshotSync("a", [primary, fallback])

        sync.publish("http://eta", make_snapshot())

        self.assertIs(sync.channel, primary)
        self.assertEqual(len(primary.posted), 1)
        self.assertEqual(fallback.posted, [])

    def test_falls_back_when_primary_unavailable(self):
        primary = LoopbackChannel(available=False)
        fallback = LoopbackChannel()
        sync = SnapshotSync("a", [primary, fallback])
        sync.on_receive(lambda message: None)

        sync.publish("http://eta", make_snapshot())

        self.assertIs(sync.channel, fallback)
        self.assertEqual(primary.posted, [])
        self.assertEqual(primary.subscribers, [])
        self.assertEqual(len(fallback.posted), 1)
        self.assertEqual(len(fallback.subscribers), 1)

    def test_no_channel_is_harmless(self):
        sync = SnapshotSync("a", [LoopbackChannel(available=False)])

        sync.publish("http://eta", make_snapshot())
        unsubscribe = sync.on_receive(lambda message: None)
        unsubscribe()

        self.assertIsNone(sync.channel)

    def test_published_snapshot_is_a_copy(self):
        channel = LoopbackChannel()
        sync = SnapshotSync("a", [channel])
        snapshot = make_snapshot()

        sync.publish("http://eta", snapshot)
        snapshot.clear()

        self.assertTrue(channel.posted[0].snapshot)


class TestDispatcherChannel(unittest.TestCase):

    def test_unavailable_without_hass(self):
        self.assertFalse(DispatcherChannel(None, SIGNAL_SNAPSHOT).available)

    def test_post_sends_signal(self):
        hass = MagicMock()
        channel = DispatcherChannel(hass, SIGNAL_SNAPSHOT)
        message = SyncMessage(origin="a", source="mock", snapshot={})

        with patch("custom_components.eta_heating.sync.async_dispatcher_send") as send:
            channel.post(message)

        send.assert_called_once_with(hass, SIGNAL_SNAPSHOT, message)

    def test_subscribe_connects_signal(self):
        hass = MagicMock()
        channel = DispatcherChannel(hass, SIGNAL_SNAPSHOT)
        callback = MagicMock()
        unsub = MagicMock()

        with patch("custom_components.eta_heating.sync.async_dispatcher_connect", return_value=unsub) as connect:
            result = channel.subscribe(callback)

        connect.assert_called_once_with(hass, SIGNAL_SNAPSHOT, callback)
        self.assertIs(result, unsub)


class TestStorageChannel(unittest.TestCase):

    def test_write_by_other_view_is_delivered_with_writer_source(self):
        shared = SharedSnapshots()
        view_a = SnapshotSync("a", [StorageChannel(shared)])
        view_b = SnapshotSync("b", [StorageChannel(shared)])
        received = []
        view_b.on_receive(received.append)

        snapshot = make_snapshot()
        view_a.publish("http://eta", snapshot)

        self.assertEqual(received, [SyncMessage(origin="a", source="http://eta", snapshot=snapshot)])

    def test_own_write_is_ignored(self):
        shared = SharedSnapshots()
        view_b = SnapshotSync("b", [StorageChannel(shared)])
        received = []
        view_b.on_receive(received.append)

        view_b.publish("http://eta", make_snapshot())
        self.assertEqual(received, [])

    def test_post_notifies_every_listener(self):
        shared = SharedSnapshots()
        first, second = [], []
        shared.add_listener(first.append)
        shared.add_listener(second.append)
        message = SyncMessage(origin="a", source="mock", snapshot=make_snapshot())

        StorageChannel(shared).post(message)

        self.assertEqual(first, [message])
        self.assertEqual(second, [message])

    def test_removed_listener_not_called(self):
        shared = SharedSnapshots()
        received = []
        remove = shared.add_listener(received.append)
        remove()
        remove()  # second call is harmless

        shared.write(SyncMessage(origin="a", source="mock", snapshot={}))
        self.assertEqual(received, [])

    def test_separate_instances_do_not_share(self):
        received = []
        SnapshotSync("b", [StorageChannel(SharedSnapshots())]).on_receive(received.append)

        SnapshotSync("a", [StorageChannel(SharedSnapshots())]).publish("mock", make_snapshot())
        self.assertEqual(received, [])
