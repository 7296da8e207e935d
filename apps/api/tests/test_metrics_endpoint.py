from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from crm_api.core.config import get_settings
from factories import Member


@pytest.fixture()
def metrics_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()


def test_metrics_endpoint_exposes_http_and_write_metrics(
    metrics_enabled: None,
    client: TestClient,
    make_member: Callable[..., Member],
) -> None:
    member = make_member()

    health = client.get("/api/health")
    assert health.status_code == 200

    contact = client.post("/api/contacts", json={"first_name": "Ada", "last_name": "Lovelace"}, headers=member.headers)
    assert contact.status_code == 201
    assert client.get(f"/api/contacts/{contact.json()['id']}", headers=member.headers).status_code == 200
    assert client.get("/api/contacts", headers=member.headers).status_code == 200
    assert client.get("/api/contacts", headers={"Organization": member.org_id.format()}).status_code == 401

    metrics = client.get("/api/metrics")
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "crm_entity_writes_total" in body
    assert "crm_service_errors_total" in body
    assert "crm_page_rows" in body

    assert 'path="/api/health"' in body
    assert 'path="/api/contacts/{id}"' in body
    assert 'entity_type="contact",operation="create"' in body
    assert 'code="unauthorized"' in body
    assert 'entity="contacts"' in body
    assert contact.json()["id"] not in body


def test_metrics_endpoint_is_hidden_when_disabled(client: TestClient) -> None:
    response = client.get("/api/metrics")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_health_reports_service(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == get_settings().app_name


def test_relation_routes_keep_resource_type_in_path_label(
    metrics_enabled: None,
    client: TestClient,
    make_member: Callable[..., Member],
) -> None:
    member = make_member()
    deal = client.post("/api/deals", json={"name": "Labelled"}, headers=member.headers).json()
    assert client.get(f"/api/deals/{deal['id']}/contacts", headers=member.headers).status_code == 200

    body = client.get("/api/metrics").text
    assert 'path="/api/deals/{id}/{resource_type}"' in body
    assert deal["id"] not in body
