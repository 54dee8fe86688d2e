"""
One-shot watch dispatcher tests.
"""

from __future__ import annotations

import threading
import unittest

from zk_client.events import EventType, WatchEvent
from zk_client.watches import WatchDispatcher


def deleted(path: str) -> WatchEvent:
    return WatchEvent(path=path, type=EventType.DELETED)


class WatchDispatcherTest(unittest.TestCase):
    """
    Validates registration, one-shot delivery and re-entrancy.
    """

    def setUp(self) -> None:
        self.dispatcher = WatchDispatcher()

    def test_all_listeners_notified_in_registration_order(self) -> None:
        calls: list[tuple[str, WatchEvent]] = []
        for name in ("first", "second", "third"):
            self.dispatcher.register_one_shot("/a", lambda event, name=name: calls.append((name, event)))

        delivered = self.dispatcher.dispatch(deleted("/a"))

        self.assertEqual(3, delivered)
        self.assertEqual(["first", "second", "third"], [name for name, _ in calls])
        self.assertTrue(all(event.path == "/a" for _, event in calls))

    def test_registration_is_consumed_by_first_event(self) -> None:
        calls: list[WatchEvent] = []
        self.dispatcher.register_one_shot("/a", calls.append)

        self.dispatcher.dispatch(deleted("/a"))
        self.dispatcher.dispatch(deleted("/a"))

        self.assertEqual(1, len(calls))
        self.assertEqual(0, self.dispatcher.pending())

    def test_event_without_listeners_is_dropped(self) -> None:
        self.assertEqual(0, self.dispatcher.dispatch(deleted("/nobody")))
        self.assertEqual(0, self.dispatcher.dispatch(WatchEvent(path=None, type=EventType.SESSION)))

    def test_events_only_reach_listeners_of_their_path(self) -> None:
        calls: list[WatchEvent] = []
        self.dispatcher.register_one_shot("/a", calls.append)

        self.dispatcher.dispatch(deleted("/b"))

        self.assertEqual([], calls)
        self.assertEqual(1, self.dispatcher.pending("/a"))

    def test_listener_may_register_itself_again(self) -> None:
        calls: list[WatchEvent] = []

        def listener(event: WatchEvent) -> None:
            calls.append(event)
            if len(calls) < 3:
                self.dispatcher.register_one_shot("/a", listener)

        self.dispatcher.register_one_shot("/a", listener)
        for _ in range(5):
            self.dispatcher.dispatch(deleted("/a"))

        self.assertEqual(3, len(calls))
        self.assertEqual(0, self.dispatcher.pending("/a"))

    def test_failing_listener_does_not_block_others(self) -> None:
        calls: list[WatchEvent] = []

        def broken(event: WatchEvent) -> None:
            raise RuntimeError("listener bug")

        self.dispatcher.register_one_shot("/a", broken)
        self.dispatcher.register_one_shot("/a", calls.append)

        with self.assertLogs("zk_client.watches", level="ERROR"):
            delivered = self.dispatcher.dispatch(deleted("/a"))

        self.assertEqual(2, delivered)
        self.assertEqual(1, len(calls))

    def test_unregister(self) -> None:
        calls: list[WatchEvent] = []
        subscription_id = self.dispatcher.register_one_shot("/a", calls.append)

        self.assertTrue(self.dispatcher.unregister("/a", subscription_id))
        self.assertFalse(self.dispatcher.unregister("/a", subscription_id))
        self.dispatcher.dispatch(deleted("/a"))

        self.assertEqual([], calls)

    def test_concurrent_registration_and_dispatch_delivers_each_registration_once(self) -> None:
        counts: dict[int, int] = {}
        counts_lock = threading.Lock()
        registrations = 2000
        done = threading.Event()

        def make_listener(index: int):
            def listener(event: WatchEvent) -> None:
                with counts_lock:
                    counts[index] = counts.get(index, 0) + 1

            return listener

        def register_all() -> None:
            for index in range(registrations):
                self.dispatcher.register_one_shot("/hot", make_listener(index))
            done.set()

        def dispatch_until_done() -> None:
            while not done.is_set():
                self.dispatcher.dispatch(deleted("/hot"))

        registrar = threading.Thread(target=register_all)
        delivery = threading.Thread(target=dispatch_until_done)
        delivery.start()
        registrar.start()
        registrar.join(timeout=10.0)
        delivery.join(timeout=10.0)
        self.dispatcher.dispatch(deleted("/hot"))

        self.assertEqual(registrations, len(counts))
        self.assertEqual({1}, set(counts.values()))


if __name__ == "__main__":
    unittest.main()
