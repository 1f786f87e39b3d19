"""Real-time infrastructure — in-process websocket fan-out.

Learn: Events flow one way:
1. Mutation handler commits its write → publish_event(topic, payload)
2. EventGateway serializes one envelope and sends it to every open socket
3. SubscriptionClient (plotdesk.client) maps the topic to cache invalidations

There is no broker: a single process owns the whole connection registry.
Delivery is best-effort; the REST API remains the source of truth.
"""

from plotdesk.realtime.envelope import Envelope, EnvelopeError
from plotdesk.realtime.gateway import EventGateway, gateway, publish_event
from plotdesk.realtime.registry import Connection, ConnectionRegistry, ConnectionState

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "Envelope",
    "EnvelopeError",
    "EventGateway",
    "gateway",
    "publish_event",
]
