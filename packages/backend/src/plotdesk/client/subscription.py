"""Subscription client — one live gateway connection per dashboard session.

Learn: The session cycles Disconnected → Connecting → Connected →
Disconnected (retry scheduled) → Connecting → ... forever, with a fixed
delay between attempts. No backoff and no retry cap: the gateway is a
same-deployment peer that is normally up. A session without a credential
never tries to connect at all.

Exactly one of "retry sleep pending" or "socket open" holds at any time:
the next attempt starts only after the previous socket is torn down, and
stop() cancels whichever one is live.

Every inbound frame is decoded, routed through ROUTING_TABLE and turned
into cache invalidations. Nothing here raises into the caller; the
dashboard must keep working over plain REST when the channel is down.
"""

import asyncio
import enum
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog
from websockets.asyncio.client import connect as websocket_connect

from plotdesk.client import routing
from plotdesk.client.cache import QueryCache
from plotdesk.config import settings
from plotdesk.realtime.envelope import EnvelopeError, decode_frame

logger = structlog.get_logger()

Connector = Callable[[str], Awaitable[Any]]
MessageListener = Callable[[dict, list], None]


class SessionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


async def _default_connect(url: str):
    return await websocket_connect(url, open_timeout=10)


async def _close_quietly(socket: Any) -> None:
    try:
        await socket.close()
    except Exception as e:
        logger.debug("subscription.close_failed", error=str(e))


class SubscriptionClient:
    """Keeps a dashboard session subscribed and its query cache honest.

    Usage:
        cache = InMemoryQueryCache()
        async with SubscriptionClient("ws://localhost:8000/ws", cache, token):
            ...  # cache entries go stale as the server publishes changes
    """

    def __init__(
        self,
        url: str,
        cache: QueryCache,
        token: Optional[str] = None,
        *,
        reconnect_delay: Optional[float] = None,
        connect: Optional[Connector] = None,
        on_message: Optional[MessageListener] = None,
    ):
        self.url = url
        self.cache = cache
        self.token = token
        self.reconnect_delay = (
            settings.reconnect_delay_seconds if reconnect_delay is None else reconnect_delay
        )
        self.state = SessionState.DISCONNECTED
        self.last_envelope: Optional[dict] = None
        self.attempts = 0

        self._connect = connect or _default_connect
        self._on_message = on_message
        self._socket: Any = None
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def is_connected(self) -> bool:
        return self.state is SessionState.CONNECTED

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def connection_url(self) -> str:
        """Gateway URL with the credential as the ``token`` query param."""
        parts = urlsplit(self.url)
        query = [(k, v) for k, v in parse_qsl(parts.query) if k != "token"]
        query.append(("token", self.token or ""))
        return urlunsplit(parts._replace(query=urlencode(query)))

    # ── Lifecycle ────────────────────────────────────────────

    def start(self) -> bool:
        """Begin the connect loop. Must be called with a running event loop.

        Returns False (and stays disconnected) when there is no credential.
        """
        if self.is_running:
            return True
        if not self.token:
            logger.info("subscription.no_credential", url=self.url)
            return False
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def stop(self) -> None:
        """Cancel any pending retry and close the live socket. Idempotent."""
        self._stopped = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        socket, self._socket = self._socket, None
        if socket is not None:
            await _close_quietly(socket)
        if self.state is not SessionState.DISCONNECTED:
            logger.info("subscription.stopped", url=self.url)
        self.state = SessionState.DISCONNECTED

    async def __aenter__(self) -> "SubscriptionClient":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    async def _run(self) -> None:
        while not self._stopped:
            await self._connect_once()
            if self._stopped:
                break
            self.state = SessionState.DISCONNECTED
            logger.info(
                "subscription.reconnect_scheduled",
                delay=self.reconnect_delay,
                attempts=self.attempts,
            )
            await asyncio.sleep(self.reconnect_delay)

    async def _connect_once(self) -> None:
        self.state = SessionState.CONNECTING
        self.attempts += 1
        try:
            socket = await self._connect(self.connection_url())
        except Exception as e:
            logger.warning(
                "subscription.connect_failed", error=str(e), attempt=self.attempts
            )
            return

        self._socket = socket
        self.state = SessionState.CONNECTED
        logger.info("subscription.connected", url=self.url, attempt=self.attempts)
        try:
            async for raw in socket:
                self.handle_message(raw)
        except Exception as e:
            logger.warning("subscription.connection_lost", error=str(e))
        finally:
            self._socket = None
            await _close_quietly(socket)
        logger.info("subscription.disconnected", url=self.url)

    # ── Envelopes ────────────────────────────────────────────

    def handle_message(self, raw: str | bytes) -> list:
        """Apply one inbound frame. Returns the invalidated query keys."""
        try:
            message = decode_frame(raw)
        except EnvelopeError as e:
            logger.warning("subscription.bad_frame", error=str(e))
            return []

        topic = message.get("type")
        if not isinstance(topic, str) or not topic:
            logger.debug("subscription.untyped_frame", type=repr(topic))
            return []

        self.last_envelope = message
        data = message.get("data")
        keys = routing.resolve(topic, data if isinstance(data, dict) else {})
        if not keys:
            logger.debug("subscription.unrouted", topic=topic)

        for key in keys:
            try:
                self.cache.invalidate(key)
            except Exception as e:
                logger.warning("subscription.invalidate_failed", key=key, error=str(e))

        if self._on_message is not None:
            try:
                self._on_message(message, keys)
            except Exception as e:
                logger.warning("subscription.listener_failed", error=str(e))
        return keys
