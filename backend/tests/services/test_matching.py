"""Tests for stored/active alert matching."""

from alert_receiver.schemas.alert import ActiveAlert, StoredAlert
from alert_receiver.services.matching import (
    find_active_alert,
    get_grafana_dashboard_url,
    in_scope,
    normalize_status,
)
from tests.support.alerts import GRAPH_URL, active_alert, stored_alert


def active(*records: dict) -> list[ActiveAlert]:
    return [ActiveAlert.model_validate(r) for r in records]


class TestNormalizeStatus:
    def test_active_is_firing(self):
        assert normalize_status("active") == "firing"

    def test_other_states_pass_through(self):
        assert normalize_status("firing") == "firing"
        assert normalize_status("resolved") == "resolved"
        assert normalize_status("suppressed") == "suppressed"


class TestInScope:
    def test_graph_url_containing_scope(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        assert in_scope(stored, "http://prometheus.example.com/graph") is True

    def test_graph_url_not_containing_scope(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        assert in_scope(stored, "http://other-prometheus/graph") is False

    def test_scope_longer_than_graph_url(self):
        stored = StoredAlert.model_validate(stored_alert("a1", graph_url="http://g/1"))
        assert in_scope(stored, "http://g/12") is False

    def test_resolved_alerts_are_out_of_scope(self):
        stored = StoredAlert.model_validate(stored_alert("a1", status="resolved"))
        assert in_scope(stored, GRAPH_URL) is False

    def test_stale_alerts_stay_in_scope(self):
        stored = StoredAlert.model_validate(stored_alert("a1", status="stale"))
        assert in_scope(stored, GRAPH_URL) is True


class TestFindActiveAlert:
    def test_matches_on_id_and_alertname(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        alerts = active(active_alert("a0"), active_alert("a1"))

        assert find_active_alert(stored, alerts, "cpu_high") is alerts[1]

    def test_alertname_must_match_topic(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        alerts = active(active_alert("a1", alertname="disk_full"))

        assert find_active_alert(stored, alerts, "cpu_high") is None

    def test_first_match_wins(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        alerts = active(active_alert("a1", state="resolved"), active_alert("a1", state="active"))

        assert find_active_alert(stored, alerts, "cpu_high").status.state == "resolved"

    def test_no_match_in_empty_batch(self):
        stored = StoredAlert.model_validate(stored_alert("a1"))
        assert find_active_alert(stored, [], "cpu_high") is None


class TestGrafanaDashboardUrl:
    def test_joins_base_and_dashboard_path(self):
        alert = active(active_alert("a1", grafana_dashboard_path="/d/abc/node?var-host=web1"))[0]
        assert (
            get_grafana_dashboard_url(alert, "https://grafana.example.com/")
            == "https://grafana.example.com/d/abc/node?var-host=web1"
        )

    def test_none_without_match(self):
        assert get_grafana_dashboard_url(None, "https://grafana.example.com") is None

    def test_none_without_base_url(self):
        alert = active(active_alert("a1", grafana_dashboard_path="/d/abc"))[0]
        assert get_grafana_dashboard_url(alert, None) is None

    def test_none_without_dashboard_annotation(self):
        alert = active(active_alert("a1"))[0]
        assert get_grafana_dashboard_url(alert, "https://grafana.example.com") is None
