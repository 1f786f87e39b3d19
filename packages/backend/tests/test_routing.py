"""Routing table + query cache tests."""

import pytest

from plotdesk.client.cache import InMemoryQueryCache
from plotdesk.client.routing import ROUTING_TABLE, Invalidation, resolve, unrouted_topics
from plotdesk.realtime.topics import ALL_TOPICS


def test_every_topic_has_a_target():
    """No publishable topic may silently no-op on the dashboard."""
    assert unrouted_topics() == set()
    for topic in ALL_TOPICS:
        assert len(resolve(topic, {})) >= 1, topic


def test_table_only_routes_known_topics():
    assert set(ROUTING_TABLE) == set(ALL_TOPICS)


def test_lead_topics_refresh_lead_views():
    keys = resolve("lead:assigned", {"leadId": "l-1", "salespersonId": "sp-1"})
    assert ("/api/leads",) in keys
    assert ("/api/dashboard",) in keys
    assert ("/api/missed-followups",) in keys


def test_call_log_targets_the_lead():
    keys = resolve("callLog:created", {"leadId": "l-9"})
    assert keys[0] == ("/api/call-logs/lead", "l-9")
    assert ("/api/leads/contacted",) in keys


def test_targeted_key_skipped_without_field():
    """Blanket invalidations still happen when the payload lacks the id."""
    keys = resolve("callLog:created", {})
    assert all(len(k) == 1 for k in keys)
    assert ("/api/leads",) in keys


def test_lead_interest_targets_lead_and_project():
    keys = resolve("leadInterest:created", {"leadId": "l-1", "projectId": "pr-2", "plotIds": ["a"]})
    assert ("/api/lead-interests/lead", "l-1") in keys
    assert ("/api/lead-interests/project", "pr-2") in keys
    assert ("/api/plots",) in keys


def test_metrics_without_payload_is_broad():
    keys = resolve("metrics:updated", {})
    assert ("/api/analytics",) in keys
    assert ("/api/dashboard/salesperson",) in keys


@pytest.mark.parametrize("topic", ["some:unrecognized:topic", "connected", ""])
def test_unknown_topics_resolve_to_nothing(topic):
    assert resolve(topic, {"leadId": "x"}) == []


def test_resolve_has_no_duplicates():
    for topic in ALL_TOPICS:
        keys = resolve(topic, {"leadId": "l", "plotId": "p", "projectId": "pr"})
        assert len(keys) == len(set(keys))


def test_invalidation_key_for():
    assert Invalidation("/api/plots").key_for({}) == ("/api/plots",)
    assert Invalidation("/api/x", param="plotId").key_for({"plotId": "p1"}) == ("/api/x", "p1")
    assert Invalidation("/api/x", param="plotId").key_for({"plotId": ""}) is None


# ═══════════════════════════════════════════════════════════
# Query cache
# ═══════════════════════════════════════════════════════════


def test_prefix_invalidation_marks_children_stale():
    cache = InMemoryQueryCache()
    cache.set(("/api/leads",), [1, 2])
    cache.set(("/api/leads", "assigned"), [1])
    cache.set(("/api/leads/contacted",), [2])

    assert cache.invalidate(("/api/leads",)) == 2
    assert cache.is_stale(("/api/leads",))
    assert cache.is_stale(("/api/leads", "assigned"))
    assert not cache.is_stale(("/api/leads/contacted",))


def test_refetch_clears_stale_flag():
    cache = InMemoryQueryCache()
    cache.set(("/api/plots",), [])
    cache.invalidate(("/api/plots",))
    cache.set(("/api/plots",), ["fresh"])
    assert not cache.is_stale(("/api/plots",))
    assert cache.get(("/api/plots",)) == ["fresh"]


def test_invalidation_callback():
    seen = []
    cache = InMemoryQueryCache(on_invalidate=seen.append)
    cache.invalidate(("/api/dashboard",))
    assert seen == [("/api/dashboard",)]
    assert cache.invalidations == [("/api/dashboard",)]


@pytest.mark.parametrize("topic", [["lead:created"], {"a": 1}, None, 7])
def test_non_string_topics_resolve_to_nothing(topic):
    assert resolve(topic, {"leadId": "x"}) == []


def test_stale_keys_lists_invalidated_entries():
    cache = InMemoryQueryCache()
    cache.set(("/api/payments",), [])
    cache.set(("/api/plots",), [])
    cache.invalidate(("/api/plots",))

    stale = cache.stale_keys()
    assert stale == {("/api/plots",)}
    stale.clear()
    assert cache.is_stale(("/api/plots",))
