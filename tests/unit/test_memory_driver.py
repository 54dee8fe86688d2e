"""
In-memory ensemble driver tests.

These exercise the raw driver surface (result mappings with ``rc`` codes)
without the client layer on top.
"""

from __future__ import annotations

import threading
import unittest

from zk_client.config import OPEN_ACL_UNSAFE, READ_ACL_UNSAFE
from zk_client.events import EventType, WatchEvent
from zk_client.exceptions import HandleClosedError, ResultCode
from zk_client.memory import InMemoryEnsemble


class InMemoryDriverTest(unittest.TestCase):
    """
    Validates result codes, sequencing, ephemerals and watch delivery.
    """

    def setUp(self) -> None:
        self.ensemble = InMemoryEnsemble()
        self.driver = self.ensemble.connect()
        self.other = self.ensemble.connect()
        self.addCleanup(self._close, self.driver)
        self.addCleanup(self._close, self.other)

    @staticmethod
    def _close(driver) -> None:
        try:
            driver.close()
        except HandleClosedError:
            pass

    def create(self, driver, path: str, *, ephemeral: bool = False, sequence: bool = False, data: bytes = b""):
        return driver.create(path, data, acl=OPEN_ACL_UNSAFE, ephemeral=ephemeral, sequence=sequence)

    def test_create_and_get(self) -> None:
        result = self.create(self.driver, "/a", data=b"payload")
        self.assertEqual({"rc": 0, "path": "/a"}, result)

        fetched = self.other.get("/a")
        self.assertEqual(0, fetched["rc"])
        self.assertEqual(b"payload", fetched["data"])
        self.assertEqual(7, fetched["stat"].data_length)
        self.assertEqual(0, fetched["stat"].ephemeral_owner)

    def test_create_failure_codes(self) -> None:
        self.create(self.driver, "/a")
        self.assertEqual(ResultCode.NODEEXISTS, self.create(self.driver, "/a")["rc"])
        self.assertEqual(ResultCode.NONODE, self.create(self.driver, "/missing/child")["rc"])
        self.assertEqual(ResultCode.NODEEXISTS, self.create(self.driver, "/")["rc"])
        self.assertEqual(ResultCode.BADARGUMENTS, self.create(self.driver, "relative")["rc"])
        self.assertEqual(ResultCode.BADARGUMENTS, self.create(self.driver, "/a/")["rc"])
        self.assertEqual(
            ResultCode.INVALIDACL,
            self.driver.create("/b", b"", acl=(), ephemeral=False, sequence=False)["rc"],
        )

    def test_sequential_names_use_parent_child_version(self) -> None:
        self.create(self.driver, "/q")
        first = self.create(self.driver, "/q/item-", sequence=True)["path"]
        second = self.create(self.driver, "/q/item-", sequence=True)["path"]

        self.assertEqual("/q/item-0000000000", first)
        self.assertEqual("/q/item-0000000001", second)

    def test_sequential_create_accepts_trailing_slash(self) -> None:
        self.create(self.driver, "/locks")
        self.create(self.driver, "/locks/holder")

        self.assertEqual({"rc": 0, "path": "/locks/0000000001"}, self.create(self.driver, "/locks/", sequence=True))
        self.assertEqual(["0000000001", "holder"], self.other.get_children("/locks")["children"])
        self.assertEqual(ResultCode.BADARGUMENTS, self.create(self.driver, "/locks//", sequence=True)["rc"])

    def test_ephemeral_nodes_cannot_have_children(self) -> None:
        self.create(self.driver, "/e", ephemeral=True)
        self.assertEqual(ResultCode.NOCHILDRENFOREPHEMERALS, self.create(self.driver, "/e/child")["rc"])

    def test_delete_failure_codes(self) -> None:
        self.create(self.driver, "/a")
        self.create(self.driver, "/a/b")

        self.assertEqual(ResultCode.NOTEMPTY, self.driver.delete("/a")["rc"])
        self.assertEqual(ResultCode.BADVERSION, self.driver.delete("/a/b", version=5)["rc"])
        self.assertEqual(ResultCode.NONODE, self.driver.delete("/zzz")["rc"])
        self.assertEqual(ResultCode.BADARGUMENTS, self.driver.delete("/")["rc"])
        self.assertEqual(0, self.driver.delete("/a/b", version=0)["rc"])
        self.assertEqual(0, self.driver.delete("/a")["rc"])
        self.assertEqual(["/"], self.ensemble.paths())

    def test_set_bumps_version(self) -> None:
        self.create(self.driver, "/a")
        stat = self.driver.set("/a", b"one")["stat"]
        self.assertEqual(1, stat.version)
        self.assertEqual(ResultCode.BADVERSION, self.driver.set("/a", b"two", version=0)["rc"])
        self.assertEqual(2, self.driver.set("/a", b"two", version=1)["stat"].version)

    def test_acl_round_trip(self) -> None:
        self.create(self.driver, "/a")
        self.assertEqual(list(OPEN_ACL_UNSAFE), self.driver.get_acl("/a")["acl"])

        stat = self.driver.set_acl("/a", READ_ACL_UNSAFE)["stat"]
        self.assertEqual(1, stat.aversion)
        self.assertEqual(list(READ_ACL_UNSAFE), self.driver.get_acl("/a")["acl"])
        self.assertEqual(ResultCode.BADVERSION, self.driver.set_acl("/a", OPEN_ACL_UNSAFE, version=0)["rc"])

    def test_children_sorted(self) -> None:
        self.create(self.driver, "/p")
        for name in ("c", "a", "b"):
            self.create(self.driver, f"/p/{name}")
        result = self.driver.get_children("/p")
        self.assertEqual(["a", "b", "c"], result["children"])
        self.assertEqual(3, result["stat"].num_children)

    def test_closing_session_removes_its_ephemeral_nodes(self) -> None:
        self.create(self.driver, "/mine", ephemeral=True)
        self.create(self.other, "/theirs", ephemeral=True)

        self.driver.close()

        self.assertEqual(ResultCode.NONODE, self.other.exists("/mine")["rc"])
        self.assertEqual(0, self.other.exists("/theirs")["rc"])

    def test_closed_handle_raises(self) -> None:
        self.driver.close()
        with self.assertRaises(HandleClosedError):
            self.driver.state()
        with self.assertRaises(HandleClosedError):
            self.driver.get("/")
        with self.assertRaises(HandleClosedError):
            self.driver.close()

    def test_expired_session_rejects_requests(self) -> None:
        self.create(self.driver, "/eph", ephemeral=True)
        self.driver.expire()

        self.assertEqual(ResultCode.SESSIONEXPIRED, self.driver.get("/")["rc"])
        self.assertEqual(ResultCode.NONODE, self.other.exists("/eph")["rc"])

    def test_exists_watch_on_missing_node_fires_on_creation(self) -> None:
        received: list[tuple[WatchEvent, str]] = []
        fired = threading.Event()

        def watcher(event: WatchEvent) -> None:
            received.append((event, threading.current_thread().name))
            fired.set()

        self.assertEqual(ResultCode.NONODE, self.driver.exists("/later", watcher=watcher)["rc"])
        self.create(self.other, "/later")

        self.assertTrue(fired.wait(2.0))
        event, thread_name = received[0]
        self.assertEqual("/later", event.path)
        self.assertIs(EventType.CREATED, event.type)
        self.assertTrue(thread_name.startswith("zk-memory-dispatch-"))

    def test_watch_fires_once_per_registration(self) -> None:
        received: list[WatchEvent] = []
        first = threading.Event()

        def watcher(event: WatchEvent) -> None:
            received.append(event)
            first.set()

        self.create(self.driver, "/a")
        self.driver.get("/a", watcher=watcher)
        self.driver.exists("/a", watcher=watcher)
        self.other.set("/a", b"1")
        self.other.set("/a", b"2")

        self.assertTrue(first.wait(2.0))
        barrier = threading.Event()
        self.driver._enqueue(lambda _: barrier.set(), None)
        self.assertTrue(barrier.wait(2.0))
        self.assertEqual([EventType.CHANGED], [event.type for event in received])

    def test_child_and_delete_events(self) -> None:
        received: list[WatchEvent] = []
        done = threading.Event()

        def watcher(event: WatchEvent) -> None:
            received.append(event)
            if len(received) == 2:
                done.set()

        self.create(self.driver, "/p")
        self.create(self.driver, "/p/c")
        self.driver.get_children("/p", watcher=watcher)
        self.driver.exists("/p/c", watcher=watcher)
        self.other.delete("/p/c")

        self.assertTrue(done.wait(2.0))
        self.assertEqual(
            {("/p/c", EventType.DELETED), ("/p", EventType.CHILD)},
            {(event.path, event.type) for event in received},
        )

    def test_callback_results_delivered_on_dispatch_thread(self) -> None:
        results: list[dict] = []
        done = threading.Event()

        def callback(result: dict) -> None:
            results.append(result)
            done.set()

        submitted = self.driver.get("/missing", callback=callback)

        self.assertEqual({"rc": 0}, submitted)
        self.assertTrue(done.wait(2.0))
        self.assertEqual(ResultCode.NONODE, results[0]["rc"])


if __name__ == "__main__":
    unittest.main()
