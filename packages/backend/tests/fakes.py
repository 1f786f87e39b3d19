"""In-memory stand-ins for websockets on both sides of the channel."""

import asyncio
import json
import time

_CLOSED = object()
_DROP = object()


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.005):
    """Poll ``predicate`` on the running loop until it is truthy."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


class FakeWebSocket:
    """Server-side socket as the gateway sees it (Starlette WebSocket surface)."""

    def __init__(self, token=None, headers=None, denial_supported=True):
        self.query_params = {"token": token} if token else {}
        self.headers = headers or {}
        extensions = {"websocket.http.response": {}} if denial_supported else {}
        self.scope = {"type": "websocket", "extensions": extensions}
        self.client = None
        self.accepted = False
        self.sent: list[str] = []
        self.close_code = None
        self.denial = None
        self.fail_send = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.fail_send:
            raise RuntimeError("socket is broken")
        self.sent.append(text)

    async def receive(self):
        return await self._inbox.get()

    async def close(self, code: int = 1000, reason=None):
        self.close_code = code
        self._inbox.put_nowait({"type": "websocket.disconnect", "code": code})

    async def send_denial_response(self, response):
        self.denial = response

    def peer_closes(self):
        """Simulate the browser tab going away."""
        self._inbox.put_nowait({"type": "websocket.disconnect", "code": 1001})

    def peer_says(self, text: str):
        self._inbox.put_nowait({"type": "websocket.receive", "text": text})

    def envelopes(self) -> list[dict]:
        return [json.loads(text) for text in self.sent]

    def topics(self) -> list[str]:
        return [e["type"] for e in self.envelopes()]


class FakeSocket:
    """Client-side connection as the subscription client sees it."""

    def __init__(self):
        self.closed = False
        self._frames: asyncio.Queue = asyncio.Queue()

    def push(self, frame):
        self._frames.put_nowait(frame)

    def push_envelope(self, topic: str, data=None):
        self.push(json.dumps({"type": topic, "data": data or {}, "timestamp": "2026-01-01T00:00:00Z"}))

    def drop(self):
        """Simulate a network blip."""
        self._frames.put_nowait(_DROP)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self._frames.get()
        if frame is _CLOSED:
            raise StopAsyncIteration
        if frame is _DROP:
            raise ConnectionResetError("connection reset by peer")
        return frame

    async def close(self):
        if not self.closed:
            self.closed = True
            self._frames.put_nowait(_CLOSED)


class FakeConnector:
    """Hands out FakeSockets; can be told to refuse the first N attempts."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []
        self.overlaps = 0

    async def __call__(self, url: str):
        self.urls.append(url)
        if any(not s.closed for s in self.sockets):
            self.overlaps += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionRefusedError("gateway unavailable")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    @property
    def latest(self) -> FakeSocket:
        return self.sockets[-1]
