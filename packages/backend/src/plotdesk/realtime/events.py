"""Publish helpers for CRM mutations.

Learn: Handlers don't build payloads by hand. Each helper fixes what one
mutation puts on the wire: the changed entity's id plus the foreign keys
the dashboard uses to scope its refetch (leadId, plotId, projectId).
Call the helper after the write succeeds; it never raises.

Some mutations fan out more than one topic. Recording a payment changes
the payment list, the booked plot and the dashboard totals, so it
publishes payment:created, plot:updated and metrics:updated.
"""

from typing import Optional, Sequence

from plotdesk.realtime import topics
from plotdesk.realtime.gateway import publish_event


def _compact(**fields) -> dict:
    return {k: v for k, v in fields.items() if v is not None}


# ─── Leads ───────────────────────────────────────────────


def lead_created(
    lead_id: str,
    assigned_to: Optional[str] = None,
    project_id: Optional[str] = None,
    plot_ids: Optional[Sequence[str]] = None,
) -> None:
    """New lead. A lead created with a project and plots also records interest."""
    publish_event(topics.LEAD_CREATED, {"leadId": lead_id, "assignedTo": assigned_to})
    if project_id and plot_ids:
        lead_interest_created(lead_id, project_id, plot_ids)


def lead_updated(lead_id: str) -> None:
    publish_event(topics.LEAD_UPDATED, {"leadId": lead_id})


def lead_deleted(lead_id: str) -> None:
    publish_event(topics.LEAD_DELETED, {"leadId": lead_id})


def lead_assigned(lead_id: str, salesperson_id: str) -> None:
    """Assignment and transfer both land here."""
    publish_event(
        topics.LEAD_ASSIGNED, {"leadId": lead_id, "salespersonId": salesperson_id}
    )


# ─── Calls ───────────────────────────────────────────────


def call_logged(
    call_log_id: str, lead_id: str, salesperson_id: str, call_status: str
) -> None:
    publish_event(
        topics.CALL_LOG_CREATED,
        {
            "callLogId": call_log_id,
            "leadId": lead_id,
            "salespersonId": salesperson_id,
            "callStatus": call_status,
        },
    )
    metrics_updated(salesperson_id)


# ─── Plots ───────────────────────────────────────────────


def plot_created(plot_id: str, project_id: Optional[str] = None) -> None:
    publish_event(topics.PLOT_CREATED, _compact(plotId=plot_id, projectId=project_id))


def plot_updated(plot_id: str, project_id: Optional[str] = None) -> None:
    publish_event(topics.PLOT_UPDATED, _compact(plotId=plot_id, projectId=project_id))


def plot_deleted(plot_id: str, project_id: Optional[str] = None) -> None:
    publish_event(topics.PLOT_DELETED, _compact(plotId=plot_id, projectId=project_id))


# ─── Payments ────────────────────────────────────────────


def payment_recorded(payment_id: str, lead_id: str, plot_id: str) -> None:
    publish_event(
        topics.PAYMENT_CREATED,
        {"paymentId": payment_id, "leadId": lead_id, "plotId": plot_id},
    )
    publish_event(topics.PLOT_UPDATED, {"plotId": plot_id})
    metrics_updated()


# ─── Interests ───────────────────────────────────────────


def buyer_interest_created(interest_id: str, plot_id: str) -> None:
    publish_event(
        topics.BUYER_INTEREST_CREATED, {"interestId": interest_id, "plotId": plot_id}
    )


def buyer_interest_updated(interest_id: str, plot_id: str) -> None:
    publish_event(
        topics.BUYER_INTEREST_UPDATED, {"interestId": interest_id, "plotId": plot_id}
    )


def lead_interest_created(
    lead_id: str, project_id: str, plot_ids: Sequence[str]
) -> None:
    publish_event(
        topics.LEAD_INTEREST_CREATED,
        {"leadId": lead_id, "projectId": project_id, "plotIds": list(plot_ids)},
    )


# ─── Activity + analytics ────────────────────────────────


def activity_logged(activity_id: str, user_id: Optional[str] = None) -> None:
    publish_event(topics.ACTIVITY_LOGGED, _compact(activityId=activity_id, userId=user_id))


def metrics_updated(salesperson_id: Optional[str] = None) -> None:
    """Dashboard totals moved. An empty payload means "refresh everything"."""
    publish_event(topics.METRICS_UPDATED, _compact(salespersonId=salesperson_id))
