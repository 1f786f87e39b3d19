"""Mutation publish helpers — payload conventions and the full round trip.

Learn: The helpers are wired to a fresh EventGateway through monkeypatch,
so these tests see exactly what a dashboard tab would receive, and then
feed those frames into a SubscriptionClient to check what goes stale.
"""

import asyncio

import pytest

from fakes import FakeWebSocket, wait_for
from plotdesk.client import InMemoryQueryCache, SubscriptionClient
from plotdesk.realtime import events


@pytest.fixture()
def recorded(monkeypatch):
    calls = []
    monkeypatch.setattr(events, "publish_event", lambda topic, payload=None: calls.append((topic, payload)))
    return calls


def test_payment_fans_out_three_topics(recorded):
    events.payment_recorded("pay-1", "l-1", "pl-1")
    assert recorded == [
        ("payment:created", {"paymentId": "pay-1", "leadId": "l-1", "plotId": "pl-1"}),
        ("plot:updated", {"plotId": "pl-1"}),
        ("metrics:updated", {}),
    ]


def test_call_logged_updates_salesperson_metrics(recorded):
    events.call_logged("c-1", "l-2", "sp-7", "interested")
    assert recorded == [
        (
            "callLog:created",
            {"callLogId": "c-1", "leadId": "l-2", "salespersonId": "sp-7", "callStatus": "interested"},
        ),
        ("metrics:updated", {"salespersonId": "sp-7"}),
    ]


def test_lead_created_with_plots_records_interest(recorded):
    events.lead_created("l-3", assigned_to="sp-1", project_id="pr-1", plot_ids=("a", "b"))
    assert recorded == [
        ("lead:created", {"leadId": "l-3", "assignedTo": "sp-1"}),
        ("leadInterest:created", {"leadId": "l-3", "projectId": "pr-1", "plotIds": ["a", "b"]}),
    ]


def test_lead_created_without_plots(recorded):
    events.lead_created("l-4")
    assert recorded == [("lead:created", {"leadId": "l-4", "assignedTo": None})]


def test_optional_fields_are_left_out(recorded):
    events.plot_created("pl-2")
    events.activity_logged("act-1")
    assert recorded == [
        ("plot:created", {"plotId": "pl-2"}),
        ("activity:logged", {"activityId": "act-1"}),
    ]


def test_assignment_and_interest_helpers(recorded):
    events.lead_assigned("l-5", "sp-2")
    events.buyer_interest_updated("bi-1", "pl-3")
    assert recorded == [
        ("lead:assigned", {"leadId": "l-5", "salespersonId": "sp-2"}),
        ("buyerInterest:updated", {"interestId": "bi-1", "plotId": "pl-3"}),
    ]


@pytest.mark.asyncio
async def test_round_trip_from_mutation_to_stale_cache(monkeypatch, gateway, sales_token):
    """Handler publishes → gateway fans out → client marks the right queries stale."""
    monkeypatch.setattr(events, "publish_event", gateway.publish)

    ws = FakeWebSocket(token=sales_token)
    task = asyncio.create_task(gateway.serve(ws))
    await wait_for(lambda: ws.sent)

    events.payment_recorded("pay-9", "l-9", "pl-9")
    await gateway.flush()

    cache = InMemoryQueryCache()
    for key in [("/api/payments",), ("/api/plots",), ("/api/analytics",), ("/api/leads",)]:
        cache.set(key, [])
    client = SubscriptionClient("ws://test/ws", cache, sales_token)
    for frame in ws.sent:
        client.handle_message(frame)

    assert ws.topics() == ["connected", "payment:created", "plot:updated", "metrics:updated"]
    assert cache.is_stale(("/api/payments",))
    assert cache.is_stale(("/api/plots",))
    assert cache.is_stale(("/api/analytics",))
    assert not cache.is_stale(("/api/leads",))

    ws.peer_closes()
    await asyncio.wait_for(task, timeout=1)
