"""Dashboard-side subscription: live connection + cache invalidation."""

from plotdesk.client.cache import InMemoryQueryCache, QueryCache
from plotdesk.client.routing import ROUTING_TABLE, Invalidation, resolve
from plotdesk.client.subscription import SessionState, SubscriptionClient

__all__ = [
    "InMemoryQueryCache",
    "Invalidation",
    "QueryCache",
    "ROUTING_TABLE",
    "SessionState",
    "SubscriptionClient",
    "resolve",
]
