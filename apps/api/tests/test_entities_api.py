from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crm_api.crm.models import Phone
from factories import Member

ENTITY_CASES = [
    ("notes", "note_", {"title": "Kickoff", "body": "Agenda"}, {"body": "Minutes"}),
    ("companies", "company_", {"name": "Initech"}, {"name": "Initrode"}),
    ("links", "link_", {"link": "https://example.com"}, {"link": "https://example.org"}),
    ("emails", "email_", {"email": "ada@example.com"}, {"email": "ada@example.org"}),
    ("phones", "phone_", {"number": "+1 555 0100"}, {"number": "+1 555 0199"}),
]


@pytest.mark.parametrize(("plural", "prefix", "payload", "patch"), ENTITY_CASES)
def test_entity_lifecycle(
    client: TestClient,
    make_member: Callable[..., Member],
    plural: str,
    prefix: str,
    payload: dict,
    patch: dict,
) -> None:
    member = make_member()

    created = client.post(f"/api/{plural}", json=payload, headers=member.headers)
    assert created.status_code == 201
    entity = created.json()
    assert entity["id"].startswith(prefix)
    assert entity["org_id"] == member.org_id.format()

    listing = client.get(f"/api/{plural}", headers=member.headers)
    assert listing.status_code == 200
    assert listing.json() == {plural: [entity], "total": 1}

    updated = client.put(f"/api/{plural}/{entity['id']}", json=patch, headers=member.headers)
    assert updated.status_code == 200
    assert updated.json() == {**entity, **patch, "updated_at": updated.json()["updated_at"]}

    assert client.delete(f"/api/{plural}/{entity['id']}", headers=member.headers).status_code == 204
    assert client.get(f"/api/{plural}/{entity['id']}", headers=member.headers).status_code == 404


def test_note_body_defaults_to_empty(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.post("/api/notes", json={"title": "Short"}, headers=member.headers)
    assert response.status_code == 201
    assert response.json()["body"] == ""


def test_explicit_null_does_not_clear_required_field(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    company = client.post("/api/companies", json={"name": "Initech"}, headers=member.headers).json()

    response = client.put(f"/api/companies/{company['id']}", json={"name": None}, headers=member.headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Initech"


def test_deleting_org_removes_its_entities(
    client: TestClient,
    db_session: Session,
    make_member: Callable[..., Member],
) -> None:
    member = make_member()
    phone = client.post("/api/phones", json={"number": "+1 555 0100"}, headers=member.headers).json()

    assert client.delete(f"/api/orgs/{member.org_id.format()}", headers=member.headers).status_code == 204

    assert db_session.scalar(select(func.count()).select_from(Phone)) == 0
    # The caller is no longer a member of the org, so scoped routes refuse the request.
    assert client.get(f"/api/phones/{phone['id']}", headers=member.headers).status_code == 401
