"""Match stored topic alerts against the active Alertmanager snapshot."""

from collections.abc import Iterable

from alert_receiver.schemas.alert import ActiveAlert, StoredAlert

RESOLVED = "resolved"


def normalize_status(state: str | None) -> str | None:
    """Alertmanager reports firing alerts as "active"."""
    if state == "active":
        return "firing"
    return state


def in_scope(stored: StoredAlert, graph_url: str) -> bool:
    """
    Check whether a stored alert is reconciled by the current batch.

    A topic can carry alerts from several graph queries; each batch only
    reconciles the stored alerts whose graph_url contains its own. Resolved
    alerts are never reopened here.
    """
    return graph_url in (stored.graph_url or "") and stored.status != RESOLVED


def find_active_alert(
    stored: StoredAlert,
    active_alerts: Iterable[ActiveAlert],
    alertname: str,
) -> ActiveAlert | None:
    """First active alert with the stored alert's id under this topic's alertname."""
    return next(
        (a for a in active_alerts if a.id == stored.id and a.alertname == alertname),
        None,
    )


def get_grafana_dashboard_url(active: ActiveAlert | None, grafana_url: str | None) -> str | None:
    """Dashboard link for the active alert, when it names a dashboard path."""
    if active is None or not grafana_url:
        return None

    dashboard_path = active.annotations.get("grafana_dashboard_path")
    if not dashboard_path:
        return None

    return f"{grafana_url.rstrip('/')}/{str(dashboard_path).lstrip('/')}"
