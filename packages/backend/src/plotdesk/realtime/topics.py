"""Realtime topic constants.

Learn: Centralizing topics as constants prevents typos and makes it easy
to discover every kind of change the dashboard can be told about. The
subscription client's routing table must cover all of ALL_TOPICS.
"""

# Sent once per connection right after the handshake; no routing meaning.
CONNECTED = "connected"

# ─── Leads ───────────────────────────────────────────────

LEAD_CREATED = "lead:created"
LEAD_UPDATED = "lead:updated"
LEAD_DELETED = "lead:deleted"
LEAD_ASSIGNED = "lead:assigned"

# ─── Calls ───────────────────────────────────────────────

CALL_LOG_CREATED = "callLog:created"

# ─── Plot inventory ──────────────────────────────────────

PLOT_CREATED = "plot:created"
PLOT_UPDATED = "plot:updated"
PLOT_DELETED = "plot:deleted"

# ─── Payments ────────────────────────────────────────────

PAYMENT_CREATED = "payment:created"

# ─── Interests ───────────────────────────────────────────

BUYER_INTEREST_CREATED = "buyerInterest:created"
BUYER_INTEREST_UPDATED = "buyerInterest:updated"
LEAD_INTEREST_CREATED = "leadInterest:created"

# ─── Activity + analytics ────────────────────────────────

ACTIVITY_LOGGED = "activity:logged"
METRICS_UPDATED = "metrics:updated"

ALL_TOPICS = frozenset({
    LEAD_CREATED,
    LEAD_UPDATED,
    LEAD_DELETED,
    LEAD_ASSIGNED,
    CALL_LOG_CREATED,
    PLOT_CREATED,
    PLOT_UPDATED,
    PLOT_DELETED,
    PAYMENT_CREATED,
    BUYER_INTEREST_CREATED,
    BUYER_INTEREST_UPDATED,
    LEAD_INTEREST_CREATED,
    ACTIVITY_LOGGED,
    METRICS_UPDATED,
})


def is_topic(value: object) -> bool:
    """True if ``value`` is one of the publishable topics."""
    return isinstance(value, str) and value in ALL_TOPICS
