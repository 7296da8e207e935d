from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient

from crm_api.ids import ContactId
from factories import Member


def test_generated_correlation_id_returned_in_header_and_error_envelope(
    client: TestClient,
    make_member: Callable[..., Member],
) -> None:
    member = make_member()
    response = client.get(f"/api/contacts/{ContactId.create().format()}", headers=member.headers)
    assert response.status_code == 404
    header_value = response.headers.get("x-correlation-id")
    assert header_value
    body = response.json()
    assert body["correlation_id"] == header_value


def test_correlation_id_respected_when_provided(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get(
        f"/api/contacts/{ContactId.create().format()}",
        headers={**member.headers, "X-Correlation-Id": "abc-123"},
    )
    assert response.status_code == 404
    assert response.headers.get("x-correlation-id") == "abc-123"
    assert response.json()["correlation_id"] == "abc-123"


def test_unauthorized_response_includes_correlation_id(client: TestClient) -> None:
    response = client.get("/api/contacts", headers={"X-Correlation-Id": "corr-auth-1"})
    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == "unauthorized"
    assert payload["correlation_id"] == "corr-auth-1"
    assert response.headers.get("x-correlation-id") == "corr-auth-1"


def test_successful_response_carries_correlation_header(client: TestClient) -> None:
    response = client.get("/api/health", headers={"X-Correlation-Id": "corr-health-1"})
    assert response.status_code == 200
    assert response.headers.get("x-correlation-id") == "corr-health-1"
