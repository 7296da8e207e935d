from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient

from crm_api.ids import ContactId, DealId
from factories import Member


def _create(client: TestClient, member: Member, path: str, payload: dict) -> dict:
    response = client.post(path, json=payload, headers=member.headers)
    assert response.status_code == 201
    return response.json()


def test_create_deal_defaults(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Big one"})

    assert deal["id"].startswith("deal_")
    assert deal["name"] == "Big one"
    assert deal["size"] is None
    assert deal["active"] is False


def test_update_deal_patch_semantics(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Renewal", "size": 1200.5})

    activated = client.put(f"/api/deals/{deal['id']}", json={"active": True}, headers=member.headers)
    assert activated.status_code == 200
    assert activated.json()["active"] is True
    assert activated.json()["size"] == 1200.5
    assert activated.json()["name"] == "Renewal"

    cleared = client.put(f"/api/deals/{deal['id']}", json={"name": None}, headers=member.headers)
    assert cleared.status_code == 200
    assert cleared.json()["name"] is None
    assert cleared.json()["active"] is True


def test_delete_nonexistent_deal_is_not_found(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    response = client.delete(f"/api/deals/{DealId.create().format()}", headers=member.headers)
    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "not_found"
    assert body["correlation_id"] == response.headers["x-correlation-id"]


def test_list_deals_by_org_alias(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    first = _create(client, member, "/api/deals", {"name": "A"})
    second = _create(client, member, "/api/deals", {"name": "B"})

    response = client.get("/api/deals/list/org", headers=member.headers)
    assert response.status_code == 200
    assert [deal["id"] for deal in response.json()["deals"]] == [first["id"], second["id"]]
    assert response.json()["total"] == 2


def test_attach_list_and_detach_deal_contacts(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})
    ada = _create(client, member, "/api/contacts", {"first_name": "Ada", "last_name": "Lovelace"})
    alan = _create(client, member, "/api/contacts", {"first_name": "Alan", "last_name": "Turing"})

    attached = client.post(f"/api/deals/{deal['id']}/contacts/{ada['id']}", headers=member.headers)
    assert attached.status_code == 201
    assert attached.json()["id"].startswith("dealcontact_")
    assert attached.json()["deal_id"] == deal["id"]
    assert attached.json()["contact_id"] == ada["id"]
    assert client.post(f"/api/deals/{deal['id']}/contacts/{alan['id']}", headers=member.headers).status_code == 201

    listing = client.get(f"/api/deals/{deal['id']}/contacts", params={"limit": 1}, headers=member.headers)
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()["data"]] == [ada["id"]]
    assert listing.json()["total"] == 2

    rest = client.get(
        f"/api/deals/{deal['id']}/contacts",
        params={"limit": 1, "offset": ada["id"]},
        headers=member.headers,
    )
    assert [item["id"] for item in rest.json()["data"]] == [alan["id"]]

    detached = client.delete(f"/api/deals/{deal['id']}/contacts/{ada['id']}", headers=member.headers)
    assert detached.status_code == 204

    after = client.get(f"/api/deals/{deal['id']}/contacts", headers=member.headers)
    assert [item["first_name"] for item in after.json()["data"]] == ["Alan"]


def test_attaching_twice_is_a_conflict(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})
    contact = _create(client, member, "/api/contacts", {"first_name": "Ada", "last_name": "Lovelace"})

    path = f"/api/deals/{deal['id']}/contacts/{contact['id']}"
    assert client.post(path, headers=member.headers).status_code == 201
    duplicate = client.post(path, headers=member.headers)
    assert duplicate.status_code == 500
    assert duplicate.json()["code"] == "conflict"


def test_attach_requires_both_sides_in_the_org(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member(org_name="One")
    other = make_member(org_name="Two")
    deal = _create(client, member, "/api/deals", {"name": "Deal"})
    foreign_contact = _create(client, other, "/api/contacts", {"first_name": "Eve", "last_name": "X"})

    missing_child = client.post(f"/api/deals/{deal['id']}/contacts/{foreign_contact['id']}", headers=member.headers)
    assert missing_child.status_code == 404

    missing_parent = client.post(
        f"/api/deals/{DealId.create().format()}/contacts/{ContactId.create().format()}",
        headers=member.headers,
    )
    assert missing_parent.status_code == 404

    listing = client.get(f"/api/deals/{DealId.create().format()}/contacts", headers=member.headers)
    assert listing.status_code == 404


def test_detach_unattached_contact_is_not_found(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})
    contact = _create(client, member, "/api/contacts", {"first_name": "Ada", "last_name": "Lovelace"})

    response = client.delete(f"/api/deals/{deal['id']}/contacts/{contact['id']}", headers=member.headers)
    assert response.status_code == 404


def test_unknown_resource_type_is_not_found(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})

    response = client.get(f"/api/deals/{deal['id']}/links", headers=member.headers)
    assert response.status_code == 404


def test_resource_id_of_wrong_kind_is_bad_request(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})

    response = client.post(f"/api/deals/{deal['id']}/contacts/{DealId.create().format()}", headers=member.headers)
    assert response.status_code == 400


def test_deleting_a_contact_removes_it_from_deals(client: TestClient, make_member: Callable[..., Member]) -> None:
    member = make_member()
    deal = _create(client, member, "/api/deals", {"name": "Deal"})
    contact = _create(client, member, "/api/contacts", {"first_name": "Ada", "last_name": "Lovelace"})
    assert client.post(f"/api/deals/{deal['id']}/contacts/{contact['id']}", headers=member.headers).status_code == 201

    assert client.delete(f"/api/contacts/{contact['id']}", headers=member.headers).status_code == 204

    listing = client.get(f"/api/deals/{deal['id']}/contacts", headers=member.headers)
    assert listing.json() == {"data": [], "total": 0}
