from __future__ import annotations

import json
import logging
from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from crm_api.ids import ContactId
from crm_api.logging import JsonLogFormatter
from factories import Member


def test_logs_include_correlation_id_for_http(
    client: TestClient,
    make_member: Callable[..., Member],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    member = make_member()

    path = f"/api/contacts/{ContactId.create().format()}"
    response = client.get(path, headers={**member.headers, "X-Correlation-Id": "abc-123"})
    assert response.status_code == 404

    records = [record for record in caplog.records if record.name == "crm_api.request" and record.getMessage() == "http.request"]
    assert records
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "method", None) == "GET"
        and getattr(record, "path", None) == "/api/contacts/{id}"
        and getattr(record, "status_code", None) == 404
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )


def test_writes_are_logged_with_entity_context(
    client: TestClient,
    make_member: Callable[..., Member],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    member = make_member()

    response = client.post(
        "/api/contacts",
        json={"first_name": "Ada", "last_name": "Lovelace"},
        headers={**member.headers, "X-Correlation-Id": "abc-456"},
    )
    assert response.status_code == 201

    write_records = [record for record in caplog.records if record.getMessage() == "crm.contact.create"]
    assert write_records
    record = write_records[-1]
    assert str(record.entity_id) == response.json()["id"]
    assert str(record.org_id) == member.org_id.format()
    assert getattr(record, "correlation_id", None) == "abc-456"
    assert getattr(record, "organization", None) == member.org_id.format()


def test_service_errors_are_logged_with_code(
    client: TestClient,
    make_member: Callable[..., Member],
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    member = make_member()

    response = client.delete(f"/api/contacts/{ContactId.create().format()}", headers=member.headers)
    assert response.status_code == 404

    records = [record for record in caplog.records if record.name == "crm_api.errors"]
    assert any(getattr(record, "error_code", None) == "not_found" for record in records)


def test_json_formatter_renders_typed_ids_as_strings() -> None:
    contact_id = ContactId.create()
    record = logging.makeLogRecord(
        {"name": "crm_api.test", "msg": "crm.contact.get", "levelname": "INFO", "entity_id": contact_id, "ignored": 1}
    )
    record.correlation_id = "corr-fmt-1"

    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["msg"] == "crm.contact.get"
    assert payload["correlation_id"] == "corr-fmt-1"
    assert payload["fields"] == {"entity_id": contact_id.format()}
