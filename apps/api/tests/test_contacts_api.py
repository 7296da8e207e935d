from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient

from crm_api.ids import ContactId, DealId, OrgId
from factories import Member


def _create_contact(client: TestClient, member: Member, first_name: str, last_name: str = "Doe") -> dict:
    response = client.post(
        "/api/contacts",
        json={"first_name": first_name, "last_name": last_name},
        headers=member.headers,
    )
    assert response.status_code == 201
    return response.json()


def test_create_and_get_contact(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    created = _create_contact(client, member, "Ada", "Lovelace")

    assert created["id"].startswith("contact_")
    assert created["org_id"] == member.org_id.format()
    assert created["first_name"] == "Ada"

    fetched = client.get(f"/api/contacts/{created['id']}", headers=member.headers)
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_list_contacts_pages_with_offset_cursor(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    first = _create_contact(client, member, "A")
    second = _create_contact(client, member, "B")
    third = _create_contact(client, member, "C")

    page = client.get("/api/contacts", params={"limit": 2}, headers=member.headers)
    assert page.status_code == 200
    body = page.json()
    assert [item["id"] for item in body["contacts"]] == [first["id"], second["id"]]
    assert body["total"] == 3

    next_page = client.get("/api/contacts", params={"limit": 2, "offset": second["id"]}, headers=member.headers)
    assert next_page.status_code == 200
    assert [item["id"] for item in next_page.json()["contacts"]] == [third["id"]]
    assert next_page.json()["total"] == 3


def test_list_alias_matches_collection_route(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    _create_contact(client, member, "A")

    collection = client.get("/api/contacts", headers=member.headers)
    alias = client.get("/api/contacts/list", headers=member.headers)
    assert alias.status_code == 200
    assert alias.json() == collection.json()


def test_malformed_cursor_is_rejected(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get(
        "/api/contacts",
        params={"offset": DealId.create().format()},
        headers=member.headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "malformed_identifier"


def test_update_contact_applies_only_supplied_fields(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    created = _create_contact(client, member, "Ada", "Lovelace")

    updated = client.put(f"/api/contacts/{created['id']}", json={"last_name": "Byron"}, headers=member.headers)
    assert updated.status_code == 200
    body = updated.json()
    assert body["first_name"] == "Ada"
    assert body["last_name"] == "Byron"
    assert body["updated_at"] >= created["updated_at"]


def test_delete_contact_then_get_is_not_found(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    created = _create_contact(client, member, "Ada")

    deleted = client.delete(f"/api/contacts/{created['id']}", headers=member.headers)
    assert deleted.status_code == 204

    missing = client.get(f"/api/contacts/{created['id']}", headers=member.headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"

    again = client.delete(f"/api/contacts/{created['id']}", headers=member.headers)
    assert again.status_code == 404


def test_contact_of_another_org_is_not_visible(client: TestClient, make_member: Callable[..., Member]) -> None:
    owner = make_member(org_name="One")
    outsider = make_member(org_name="Two")
    created = _create_contact(client, owner, "Ada")

    response = client.get(f"/api/contacts/{created['id']}", headers=outsider.headers)
    assert response.status_code == 404

    listing = client.get("/api/contacts", headers=outsider.headers)
    assert listing.json() == {"contacts": [], "total": 0}

    update = client.put(f"/api/contacts/{created['id']}", json={"first_name": "X"}, headers=outsider.headers)
    assert update.status_code == 404


def test_malformed_path_id_is_bad_request(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get(f"/api/contacts/{DealId.create().format()}", headers=member.headers)
    assert response.status_code == 400


def test_missing_credentials_are_unauthorized(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get("/api/contacts", headers={"Organization": member.org_id.format()})
    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


def test_invalid_bearer_token_is_unauthorized(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get(
        "/api/contacts",
        headers={"Authorization": "Bearer not-a-jwt", "Organization": member.org_id.format()},
    )
    assert response.status_code == 401


def test_organization_header_is_required_and_validated(
    client: TestClient,
    make_member: Callable[..., Member],
) -> None:
    member = make_member()
    auth = {"Authorization": f"Bearer {member.token}"}

    missing = client.get("/api/contacts", headers=auth)
    assert missing.status_code == 400

    malformed = client.get("/api/contacts", headers={**auth, "Organization": ContactId.create().format()})
    assert malformed.status_code == 400


def test_non_member_org_is_unauthorized(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.get(
        "/api/contacts",
        headers={"Authorization": f"Bearer {member.token}", "Organization": OrgId.create().format()},
    )
    assert response.status_code == 401


def test_invalid_body_keeps_validation_status(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.post("/api/contacts", json={"first_name": "Ada"}, headers=member.headers)
    assert response.status_code == 422
