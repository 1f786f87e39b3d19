"""Topic → cache invalidation routing table.

Learn: A plain lookup table, not a chain of ifs. Each topic maps to an
ordered tuple of Invalidation descriptors. A descriptor with ``param``
builds a targeted key from the envelope's data (e.g. the call-log cache of
one lead) and is skipped when that field is missing; blanket descriptors
always apply, so the targeted ones are only an optimization.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from plotdesk.realtime import topics

QueryKey = tuple


@dataclass(frozen=True)
class Invalidation:
    """One cache target: a REST path, optionally scoped by a payload field."""

    path: str
    param: Optional[str] = None

    def key_for(self, data: Mapping[str, Any]) -> Optional[QueryKey]:
        if self.param is None:
            return (self.path,)
        value = data.get(self.param)
        if value is None or value == "":
            return None
        return (self.path, value)


_LEAD_VIEWS = (
    Invalidation("/api/leads"),
    Invalidation("/api/dashboard/salesperson"),
    Invalidation("/api/dashboard/salesperson/detailed"),
    Invalidation("/api/dashboard"),
    Invalidation("/api/leads/today-followups"),
    Invalidation("/api/missed-followups"),
    Invalidation("/api/leads/contacted"),
)

_PLOT_VIEWS = (
    Invalidation("/api/plots"),
    Invalidation("/api/projects"),
    Invalidation("/api/dashboard"),
)

_BUYER_INTEREST_VIEWS = (
    Invalidation("/api/buyer-interests/plot", param="plotId"),
    Invalidation("/api/plots"),
)

ROUTING_TABLE: Mapping[str, tuple[Invalidation, ...]] = {
    topics.LEAD_CREATED: _LEAD_VIEWS,
    topics.LEAD_UPDATED: _LEAD_VIEWS,
    topics.LEAD_DELETED: _LEAD_VIEWS,
    topics.LEAD_ASSIGNED: _LEAD_VIEWS,
    topics.CALL_LOG_CREATED: (
        Invalidation("/api/call-logs/lead", param="leadId"),
        Invalidation("/api/dashboard/salesperson"),
        Invalidation("/api/dashboard/salesperson/detailed"),
        Invalidation("/api/dashboard"),
        Invalidation("/api/leads"),
        Invalidation("/api/leads/contacted"),
    ),
    topics.PLOT_CREATED: _PLOT_VIEWS,
    topics.PLOT_UPDATED: _PLOT_VIEWS,
    topics.PLOT_DELETED: _PLOT_VIEWS,
    topics.PAYMENT_CREATED: (
        Invalidation("/api/payments"),
        Invalidation("/api/dashboard"),
        Invalidation("/api/plots"),
    ),
    topics.BUYER_INTEREST_CREATED: _BUYER_INTEREST_VIEWS,
    topics.BUYER_INTEREST_UPDATED: _BUYER_INTEREST_VIEWS,
    topics.LEAD_INTEREST_CREATED: (
        Invalidation("/api/lead-interests/lead", param="leadId"),
        Invalidation("/api/lead-interests/project", param="projectId"),
        Invalidation("/api/plots"),
        Invalidation("/api/leads"),
    ),
    topics.ACTIVITY_LOGGED: (
        Invalidation("/api/activity-logs"),
    ),
    topics.METRICS_UPDATED: (
        Invalidation("/api/dashboard/salesperson"),
        Invalidation("/api/dashboard/salesperson/detailed"),
        Invalidation("/api/dashboard"),
        Invalidation("/api/analytics"),
    ),
}


def resolve(topic: str, data: Optional[Mapping[str, Any]] = None) -> list[QueryKey]:
    """Query keys to invalidate for an envelope. Unknown topics → []."""
    if not isinstance(topic, str):
        return []
    if not isinstance(data, Mapping):
        data = {}
    keys: list[QueryKey] = []
    for target in ROUTING_TABLE.get(topic, ()):
        key = target.key_for(data)
        if key is not None and key not in keys:
            keys.append(key)
    return keys


def unrouted_topics() -> set[str]:
    """Publishable topics with no invalidation target. Should always be empty."""
    return {t for t in topics.ALL_TOPICS if not ROUTING_TABLE.get(t)}
