"""
Test doubles shared by the component tests
"""
import asyncio


class FakeSocket:
    """Records every JSON frame sent to it; can be told to fail"""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise ConnectionResetError("socket is closed")
        self.sent.append(data)

    def events(self, event_type=None):
        return [f["data"] for f in self.sent if event_type is None or f["type"] == event_type]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StalledSocket(FakeSocket):
    """A peer that never drains: every send waits forever"""

    async def send_json(self, data):
        await asyncio.Event().wait()
