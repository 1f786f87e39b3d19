"""Connection registry — the gateway's set of open, authenticated sockets.

Learn: The registry is the single choke point for "who gets a broadcast".
A Connection is added only after its handshake passed auth, and removed
the moment it closes. Nothing else holds a reference that could be used
to send, so "never fan out to a removed connection" is enforced here.

Single-process, single event loop: add/remove only happen from connection
handlers on the loop, so no locking.
"""

import enum
import uuid
from typing import Any, Callable, Iterator

from plotdesk.auth.dependencies import Principal


class ConnectionState(str, enum.Enum):
    PENDING_AUTH = "pending_auth"
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    """One live websocket to one dashboard tab."""

    def __init__(self, websocket: Any, principal: Principal | None = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.principal = principal
        self.state = ConnectionState.PENDING_AUTH

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def open(self, principal: Principal) -> None:
        if self.state is not ConnectionState.PENDING_AUTH:
            raise RuntimeError(f"Connection {self.id} cannot open from {self.state.value}")
        self.principal = principal
        self.state = ConnectionState.OPEN

    def mark_closed(self) -> bool:
        """Move to CLOSED. Returns False if it already was."""
        if self.state is ConnectionState.CLOSED:
            return False
        self.state = ConnectionState.CLOSED
        return True

    async def send_text(self, message: str) -> None:
        await self.websocket.send_text(message)

    def __repr__(self) -> str:
        user = self.principal.user_id if self.principal else None
        return f"<Connection {self.id} user={user} state={self.state.value}>"


class ConnectionRegistry:
    """In-memory set of open connections with add/remove/for_each."""

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def add(self, connection: Connection) -> None:
        if not connection.is_open:
            raise ValueError("Only open, authenticated connections can be registered")
        self._connections[connection.id] = connection

    def remove(self, connection: Connection) -> bool:
        """Drop ``connection``. Returns False if it wasn't registered."""
        return self._connections.pop(connection.id, None) is not None

    def for_each(self, fn: Callable[[Connection], None]) -> int:
        """Call ``fn`` for every open connection. Returns how many were visited.

        Iterates a snapshot, so ``fn`` may close/remove connections safely.
        """
        visited = 0
        for connection in list(self._connections.values()):
            if connection.is_open:
                fn(connection)
                visited += 1
        return visited

    def snapshot(self) -> list[Connection]:
        return [c for c in list(self._connections.values()) if c.is_open]

    def __contains__(self, connection: object) -> bool:
        return isinstance(connection, Connection) and connection.id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self.snapshot())
