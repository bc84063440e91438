"""End-to-end tests for the HTTP API.

Each test builds its own app around in-memory learning stores so tests never
touch the data directory.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.learning_stores import LearningStores

WEB_SPEC = {
    "name": "web",
    "nodes": [
        {"id": "inet", "type": "internet", "label": "Internet"},
        {"id": "web", "type": "web-server", "label": "Web", "tier": "dmz"},
    ],
    "connections": [{"source": "inet", "target": "web"}],
}


@pytest.fixture
def client():
    return TestClient(create_app(LearningStores.in_memory()))


def feedback_payload(record_id: str = "fb-1", **overrides) -> dict:
    payload = {
        "id": record_id,
        "timestamp": "2026-01-01T00:00:00+00:00",
        "diagram_source": "local-parser",
        "prompt": "internet and web server",
        "original_spec": WEB_SPEC,
        "user_rating": 4,
        "session_id": "s1",
    }
    payload.update(overrides)
    return payload


def interaction_payload(index: int, anti_pattern_id: str, action: str) -> dict:
    return {
        "id": f"int-{index}",
        "timestamp": f"2026-01-01T00:00:{index:02d}+00:00",
        "anti_pattern_id": anti_pattern_id,
        "action": action,
        "session_id": "s1",
    }


def test_root_and_health(client):
    assert client.get("/").json() == {"status": "ok", "app": "InfraGuard Backend"}

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "store_backend": "memory"}


def test_audit(client):
    response = client.post("/audit", json={"spec": WEB_SPEC})

    assert response.status_code == 200, response.text
    data = response.json()
    assert [f["id"] for f in data["findings"]] == ["NET-001", "NET-002", "ACC-001", "AVAIL-002"]
    assert data["score"] == 42
    assert data["spec_name"] == "web"
    assert data["summary"]["critical"] == 1


def test_audit_rejects_unknown_node_type(client):
    spec = {"nodes": [{"id": "x", "type": "mainframe", "label": "X"}]}

    response = client.post("/audit", json={"spec": spec})

    assert response.status_code == 422


def test_calibrated_audit_suppresses_ignored_findings(client):
    for index in range(20):
        response = client.post("/interactions", json=interaction_payload(index, "NET-002", "ignored"))
        assert response.status_code == 202

    response = client.post("/audit/calibrated", json={"spec": WEB_SPEC})

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["suppressed_ids"] == ["NET-002"]
    assert [f["id"] for f in data["findings"]] == ["NET-001", "ACC-001", "AVAIL-002"]
    assert data["false_positive_rate"] == 1.0
    # The raw audit is returned unchanged
    assert len(data["audit"]["findings"]) == 4


def test_compliance_endpoints(client):
    frameworks = client.get("/compliance/frameworks").json()
    assert [f["id"] for f in frameworks][0] == "isms-p"

    response = client.post("/compliance/pci-dss", json={"spec": WEB_SPEC})
    assert response.status_code == 200
    assert response.json()["framework"] == "pci-dss"
    assert response.json()["total_checks"] == 4

    reports = client.post("/compliance", json={"spec": WEB_SPEC}).json()
    assert len(reports) == 6


def test_unknown_compliance_framework_is_404(client):
    response = client.post("/compliance/sox", json={"spec": WEB_SPEC})

    assert response.status_code == 404


def test_what_if(client):
    response = client.post("/what-if/add", json={"spec": WEB_SPEC, "node_type": "waf"})
    assert response.status_code == 200
    assert response.json()["risk_delta"] == 25

    response = client.post("/what-if/remove", json={"spec": WEB_SPEC, "node_id": "ghost"})
    assert response.status_code == 200
    assert response.json()["risk_delta"] == 0
    assert response.json()["impacts"] == []


def test_spec_diff(client):
    modified = {**WEB_SPEC, "nodes": WEB_SPEC["nodes"] + [{"id": "fw", "type": "firewall", "label": "FW"}]}

    response = client.post("/spec-diff", json={"original": WEB_SPEC, "modified": modified})

    assert response.status_code == 200
    data = response.json()
    assert data["diff"]["nodes_added"] == 1
    assert data["has_significant_changes"] is True
    assert data["modification_score"] == 0.5


def test_feedback_lifecycle(client):
    response = client.post("/feedback", json=feedback_payload())
    assert response.status_code == 201

    assert client.get("/feedback/fb-1").json()["user_rating"] == 4
    assert [r["id"] for r in client.get("/feedback", params={"session_id": "s1"}).json()] == ["fb-1"]
    assert client.get("/feedback", params={"session_id": "other"}).json() == []

    response = client.delete("/feedback/fb-1")
    assert response.status_code == 200
    assert response.json() == {"deleted": "fb-1"}

    assert client.get("/feedback/fb-1").status_code == 404
    assert client.delete("/feedback/fb-1").status_code == 404


def test_feedback_diff_computed_from_modified_spec(client):
    modified = {**WEB_SPEC, "nodes": [WEB_SPEC["nodes"][0], {**WEB_SPEC["nodes"][1], "tier": "internal"}]}

    response = client.post("/feedback", json=feedback_payload(user_modified_spec=modified))

    assert response.status_code == 201
    data = response.json()
    assert data["spec_diff"]["nodes_modified"] == 1
    assert data["placement_changes"][0]["node_id"] == "web"
    assert data["placement_changes"][0]["to_tier"] == "internal"


def test_feedback_rating_out_of_range(client):
    response = client.post("/feedback", json=feedback_payload(user_rating=6))

    assert response.status_code == 422


def test_feedback_summary(client):
    client.post("/feedback", json=feedback_payload("fb-1", user_rating=5))
    client.post("/feedback", json=feedback_payload("fb-2", user_rating=3, diagram_source="template"))

    data = client.get("/feedback/summary").json()

    assert data["total_records"] == 2
    assert data["average_rating"] == 4.0
    assert data["rating_distribution"] == {"1": 0, "2": 0, "3": 1, "4": 0, "5": 1}
    assert data["source_distribution"]["template"] == 1


def test_usage_events(client):
    event = {
        "id": "ev-1",
        "timestamp": "2026-01-01T00:00:00+00:00",
        "event_type": "parse",
        "prompt": "firewall",
        "success": True,
        "session_id": "s1",
    }

    response = client.post("/usage", json=event)
    assert response.status_code == 202
    assert response.json() == {"accepted": "ev-1"}

    assert [e["id"] for e in client.get("/usage").json()] == ["ev-1"]
    assert client.get("/usage", params={"session_id": "s2"}).json() == []


def test_calibration_statistics(client):
    client.post("/interactions", json=interaction_payload(1, "NET-001", "shown"))
    client.post("/interactions", json=interaction_payload(2, "NET-001", "fixed"))
    client.post("/interactions", json=interaction_payload(3, "ACC-001", "ignored"))

    assert len(client.get("/interactions", params={"anti_pattern_id": "NET-001"}).json()) == 2

    data = client.get("/calibration").json()
    assert [c["anti_pattern_id"] for c in data["calibrations"]] == ["ACC-001", "NET-001"]
    assert data["false_positive_rate"] == 0.5


def test_calibration_reports_rule_severities(client):
    for index in range(25):
        client.post("/interactions", json=interaction_payload(index, "NET-001", "ignored"))
    client.post("/interactions", json=interaction_payload(30, "AVAIL-002", "ignored"))

    data = client.get("/calibration").json()

    net001, avail002 = sorted(data["calibrations"], key=lambda c: c["anti_pattern_id"], reverse=True)
    assert net001["anti_pattern_id"] == "NET-001"
    assert net001["original_severity"] == "critical"
    assert net001["calibrated_severity"] == "medium"
    assert avail002["original_severity"] == "low"
    assert avail002["calibrated_severity"] == "low"


def test_interaction_requires_timezone_aware_timestamp(client):
    payload = {**interaction_payload(1, "NET-001", "shown"), "timestamp": "2026-01-01T00:00:00"}

    assert client.post("/interactions", json=payload).status_code == 422


def test_insights(client):
    for index in range(5):
        client.post("/feedback", json=feedback_payload(f"fb-{index}"))

    response = client.get("/analytics/insights")

    assert response.status_code == 200, response.text
    data = response.json()
    assert [(c["type_a"], c["type_b"]) for c in data["co_occurrences"]] == [
        ("internet", "web-server")
    ]
    assert data["co_occurrences"][0]["is_existing_relationship"] is True
    # internet -> web-server is already connected in every stored spec
    assert data["relationship_suggestions"] == []
    assert data["failed_prompts"] == []


def test_insights_rejects_bad_thresholds(client):
    response = client.get("/analytics/insights", params={"min_confidence": 1.5})

    assert response.status_code == 400
    assert "min_confidence" in response.json()["detail"]
