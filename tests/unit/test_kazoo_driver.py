"""
Kazoo adapter tests against a mocked ``KazooClient``.
"""

from __future__ import annotations

import unittest
from unittest import mock

from kazoo.exceptions import NodeExistsError as KazooNodeExistsError
from kazoo.exceptions import NoNodeError as KazooNoNodeError
from kazoo.protocol.states import EventType as KazooEventType
from kazoo.protocol.states import KeeperState as KazooKeeperState
from kazoo.protocol.states import WatchedEvent, ZnodeStat
from kazoo.security import ACL as KazooACL
from kazoo.security import Id

from zk_client import ACL, CoordinationClient, EventType, KeeperState, ResultCode, WatchEvent
from zk_client.exceptions import HandleClosedError, NodeExistsError
from zk_client.kazoo_driver import KazooDriver


def make_znode_stat(version: int = 0, num_children: int = 0) -> ZnodeStat:
    return ZnodeStat(
        czxid=5,
        mzxid=6,
        ctime=1000,
        mtime=2000,
        version=version,
        cversion=1,
        aversion=0,
        ephemeralOwner=0,
        dataLength=3,
        numChildren=num_children,
        pzxid=7,
    )


class KazooDriverTest(unittest.TestCase):
    """
    Validates the exception-to-result-code adaptation.
    """

    def setUp(self) -> None:
        self.kazoo = mock.MagicMock()
        self.kazoo.client_state = KazooKeeperState.CONNECTED
        self.driver = KazooDriver(self.kazoo)

    def test_kazoo_exceptions_become_result_codes(self) -> None:
        self.kazoo.delete.side_effect = KazooNoNodeError()
        self.assertEqual({"rc": int(ResultCode.NONODE)}, self.driver.delete("/missing"))

        self.kazoo.create.side_effect = KazooNodeExistsError()
        result = self.driver.create("/taken", b"", acl=[], ephemeral=False, sequence=False)
        self.assertEqual(int(ResultCode.NODEEXISTS), result["rc"])

    def test_client_raises_typed_error_through_kazoo(self) -> None:
        self.kazoo.create.side_effect = KazooNodeExistsError()
        zk = CoordinationClient(self.driver)
        with self.assertRaises(NodeExistsError):
            zk.create("/taken")

    def test_missing_node_on_exists(self) -> None:
        self.kazoo.exists.return_value = None
        self.assertEqual({"rc": int(ResultCode.NONODE)}, self.driver.exists("/missing"))

    def test_stat_conversion(self) -> None:
        self.kazoo.get.return_value = (b"abc", make_znode_stat(version=4, num_children=2))

        result = self.driver.get("/node")

        self.assertEqual(0, result["rc"])
        self.assertEqual(b"abc", result["data"])
        self.assertEqual(4, result["stat"].version)
        self.assertEqual(2, result["stat"].num_children)
        self.assertEqual(3, result["stat"].data_length)

    def test_create_passes_flags_and_acl(self) -> None:
        self.kazoo.create.return_value = "/seq-0000000003"
        acl = [ACL(perms=31, scheme="world", id="anyone")]

        result = self.driver.create("/seq-", b"x", acl=acl, ephemeral=True, sequence=True)

        self.assertEqual({"rc": 0, "path": "/seq-0000000003"}, result)
        self.kazoo.create.assert_called_once_with(
            "/seq-",
            b"x",
            acl=[KazooACL(31, Id("world", "anyone"))],
            ephemeral=True,
            sequence=True,
        )

    def test_acl_conversion_back(self) -> None:
        self.kazoo.get_acls.return_value = ([KazooACL(1, Id("digest", "bob:xyz"))], make_znode_stat())

        result = self.driver.get_acl("/node")

        self.assertEqual([ACL(perms=1, scheme="digest", id="bob:xyz")], result["acl"])

    def test_watch_wrapper_converts_event_and_is_stable(self) -> None:
        self.kazoo.exists.return_value = make_znode_stat()
        received: list[WatchEvent] = []

        self.driver.exists("/a", watcher=received.append)
        self.driver.exists("/a", watcher=received.append)

        first = self.kazoo.exists.call_args_list[0].kwargs["watch"]
        second = self.kazoo.exists.call_args_list[1].kwargs["watch"]
        self.assertIs(first, second)

        first(WatchedEvent(KazooEventType.DELETED, KazooKeeperState.CONNECTED, "/a"))
        self.assertEqual([WatchEvent("/a", EventType.DELETED, KeeperState.CONNECTED)], received)

    def test_async_request_reports_through_callback(self) -> None:
        async_result = mock.MagicMock()
        async_result.get.return_value = (b"v", make_znode_stat())
        async_result.rawlink.side_effect = lambda handler: handler(async_result)
        self.kazoo.get_async.return_value = async_result
        results: list[dict] = []

        returned = self.driver.get("/node", callback=results.append)

        self.assertEqual({"rc": 0}, returned)
        self.assertEqual(b"v", results[0]["data"])

    def test_async_failure_reports_result_code(self) -> None:
        async_result = mock.MagicMock()
        async_result.get.side_effect = KazooNoNodeError()
        async_result.rawlink.side_effect = lambda handler: handler(async_result)
        self.kazoo.delete_async.return_value = async_result
        results: list[dict] = []

        self.driver.delete("/gone", callback=results.append)

        self.assertEqual([{"rc": int(ResultCode.NONODE)}], results)

    def test_state_mapping(self) -> None:
        self.assertIs(KeeperState.CONNECTED, self.driver.state())
        self.kazoo.client_state = KazooKeeperState.CONNECTING
        self.assertIs(KeeperState.CONNECTING, self.driver.state())
        self.kazoo.client_state = KazooKeeperState.CLOSED
        with self.assertRaises(HandleClosedError):
            self.driver.state()

    def test_close_stops_client_once(self) -> None:
        self.driver.close()

        self.kazoo.stop.assert_called_once_with()
        self.kazoo.close.assert_called_once_with()
        with self.assertRaises(HandleClosedError):
            self.driver.close()
        with self.assertRaises(HandleClosedError):
            self.driver.get("/node")

    def test_client_close_reports_already_closed(self) -> None:
        zk = CoordinationClient(self.driver)
        self.assertTrue(zk.close())
        self.assertFalse(zk.close())
        self.assertTrue(zk.closed)


if __name__ == "__main__":
    unittest.main()
