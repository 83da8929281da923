import asyncio
import unittest

from fakes import FakeSocket, StalledSocket

from relay.hub import ConnectionHub


class TestMembership(unittest.TestCase):

    def setUp(self):
        self.hub = ConnectionHub()
        self.hub.attach("a", FakeSocket())
        self.hub.attach("b", FakeSocket())

    def test_join_is_idempotent(self):
        self.hub.join("a", "room1")
        self.hub.join("a", "room1")
        self.assertEqual(self.hub.members("room1"), {"a"})
        self.assertEqual(self.hub.rooms_of("a"), {"room1"})

    def test_leave_absent_is_noop(self):
        self.hub.leave("a", "room1")
        self.hub.join("b", "room1")
        self.hub.leave("a", "room1")
        self.assertEqual(self.hub.members("room1"), {"b"})

    def test_empty_room_is_dropped(self):
        self.hub.join("a", "room1")
        self.hub.leave("a", "room1")
        self.assertEqual(self.hub.room_count(), 0)

    def test_detach_drops_every_membership(self):
        self.hub.join("a", "room1")
        self.hub.join("a", "room2")
        self.hub.join("b", "room1")

        rooms = self.hub.detach("a")

        self.assertEqual(rooms, {"room1", "room2"})
        self.assertEqual(self.hub.members("room1"), {"b"})
        self.assertEqual(self.hub.members("room2"), set())
        self.assertFalse(self.hub.is_connected("a"))
        self.assertEqual(self.hub.connection_count(), 1)


class TestDelivery(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.hub = ConnectionHub()
        self.sockets = {cid: FakeSocket() for cid in ("a", "b", "c")}
        for cid, ws in self.sockets.items():
            self.hub.attach(cid, ws)
        self.hub.join("a", "room1")
        self.hub.join("b", "room1")

    async def test_room_broadcast_skips_excluded_connection(self):
        await self.hub.broadcast_to_room("room1", "user-typing", {"userId": "u1"}, exclude="a")

        self.assertEqual(self.sockets["a"].sent, [])
        self.assertEqual(self.sockets["b"].sent, [{"type": "user-typing", "data": {"userId": "u1"}}])
        self.assertEqual(self.sockets["c"].sent, [])

    async def test_broadcast_including_self_reaches_sender(self):
        await self.hub.broadcast_to_room_including_self("room1", "new-message", {"chatId": "room1"})

        self.assertEqual(len(self.sockets["a"].sent), 1)
        self.assertEqual(len(self.sockets["b"].sent), 1)
        self.assertEqual(self.sockets["c"].sent, [])

    async def test_broadcast_reaches_all_connections(self):
        await self.hub.broadcast("user-status-change", {"userId": "u1", "status": "online"})
        for ws in self.sockets.values():
            self.assertEqual(ws.events("user-status-change"), [{"userId": "u1", "status": "online"}])

    async def test_failed_delivery_does_not_stop_others(self):
        broken = FakeSocket(fail=True)
        self.hub.attach("broken", broken)
        self.hub.join("broken", "room1")

        failed = await self.hub.broadcast_to_room("room1", "new-message", {"chatId": "room1"})

        self.assertEqual(failed, ["broken"])
        self.assertEqual(len(self.sockets["a"].sent), 1)
        self.assertEqual(len(self.sockets["b"].sent), 1)

    async def test_stalled_socket_does_not_hold_up_room(self):
        hub = ConnectionHub(send_timeout=0.05)
        fast = FakeSocket()
        hub.attach("stalled", StalledSocket())
        hub.attach("fast", fast)
        hub.join("stalled", "room1")
        hub.join("fast", "room1")

        failed = await asyncio.wait_for(
            hub.broadcast_to_room("room1", "new-message", {"chatId": "room1"}), 1.0
        )

        self.assertEqual(failed, ["stalled"])
        self.assertEqual(fast.events("new-message"), [{"chatId": "room1"}])

    async def test_send_to_unknown_connection(self):
        self.assertFalse(await self.hub.send("nobody", "connected", {}))
        self.assertTrue(await self.hub.send("c", "connected", {"connectionId": "c"}))


if __name__ == "__main__":
    unittest.main()
