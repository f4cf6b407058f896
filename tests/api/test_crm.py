import pytest


async def create_contact(client, headers, name, **extra):
    resp = await client.post("/api/crm/contacts", json={"name": name, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_convert_lead_to_client(client, org):
    lead = await client.post(
        "/api/crm/leads",
        json={"name": "Initech", "contact_email": "bill@initech.io", "industry": "Software", "status": "hot"},
        headers=org,
    )
    assert lead.status_code == 201
    lead_id = lead.json()["id"]
    assert lead.json()["display_id"] == "LEAD-001"

    resp = await client.post(f"/api/crm/leads/{lead_id}/convert", headers=org)
    assert resp.status_code == 201
    converted = resp.json()
    assert converted["name"] == "Initech"
    assert converted["status"] == "active"
    assert converted["industry"] == "Software"
    assert converted["display_id"] == "CLT-001"

    assert (await client.get(f"/api/crm/leads/{lead_id}", headers=org)).status_code == 404
    clients = (await client.get("/api/crm/clients", headers=org)).json()
    assert [c["name"] for c in clients] == ["Initech"]


@pytest.mark.asyncio
async def test_create_client_links_contacts(client, org):
    alice = await create_contact(client, org, "Alice")
    bob = await create_contact(client, org, "Bob")

    resp = await client.post(
        "/api/crm/clients",
        json={
            "name": "Globex",
            "contact_email": "hello@globex.io",
            "contact_ids": [alice["id"], bob["id"]],
            "primary_contact_id": bob["id"],
        },
        headers=org,
    )
    assert resp.status_code == 201
    contacts = {c["name"]: c for c in resp.json()["contacts"]}
    assert set(contacts) == {"Alice", "Bob"}
    assert contacts["Bob"]["is_primary"] is True
    assert contacts["Alice"]["is_primary"] is False


@pytest.mark.asyncio
async def test_link_and_unlink_client_contacts(client, org):
    alice = await create_contact(client, org, "Alice")
    created = await client.post(
        "/api/crm/clients",
        json={"name": "Hooli", "contact_email": "hi@hooli.io"},
        headers=org,
    )
    client_id = created.json()["id"]
    assert created.json()["contacts"] == []

    resp = await client.post(
        f"/api/crm/clients/{client_id}/contacts",
        json={"contact_ids": [alice["id"], alice["id"]]},
        headers=org,
    )
    assert resp.status_code == 201
    assert [c["name"] for c in resp.json()["contacts"]] == ["Alice"]

    again = await client.post(
        f"/api/crm/clients/{client_id}/contacts",
        json={"contact_ids": [alice["id"]]},
        headers=org,
    )
    assert len(again.json()["contacts"]) == 1

    removed = await client.delete(f"/api/crm/clients/{client_id}/contacts/{alice['id']}", headers=org)
    assert removed.status_code == 204
    assert (await client.get(f"/api/crm/clients/{client_id}", headers=org)).json()["contacts"] == []


@pytest.mark.asyncio
async def test_new_primary_contact_replaces_existing_primary(client, org):
    alice = await create_contact(client, org, "Alice")
    bob = await create_contact(client, org, "Bob")
    created = await client.post(
        "/api/crm/clients",
        json={
            "name": "Vandelay",
            "contact_email": "art@vandelay.io",
            "contact_ids": [alice["id"]],
            "primary_contact_id": alice["id"],
        },
        headers=org,
    )
    client_id = created.json()["id"]

    resp = await client.post(
        f"/api/crm/clients/{client_id}/contacts",
        json={"contact_ids": [bob["id"]], "primary_contact_id": bob["id"]},
        headers=org,
    )
    assert resp.status_code == 201, resp.text
    primary = {c["name"]: c["is_primary"] for c in resp.json()["contacts"]}
    assert primary == {"Alice": False, "Bob": True}


@pytest.mark.asyncio
async def test_promote_already_linked_contact_to_primary(client, org):
    alice = await create_contact(client, org, "Alice")
    bob = await create_contact(client, org, "Bob")
    created = await client.post(
        "/api/crm/clients",
        json={
            "name": "Pendant",
            "contact_email": "office@pendant.io",
            "contact_ids": [alice["id"], bob["id"]],
            "primary_contact_id": alice["id"],
        },
        headers=org,
    )
    client_id = created.json()["id"]

    resp = await client.post(
        f"/api/crm/clients/{client_id}/contacts",
        json={"contact_ids": [bob["id"]], "primary_contact_id": bob["id"]},
        headers=org,
    )
    assert resp.status_code == 201, resp.text
    primary = {c["name"]: c["is_primary"] for c in resp.json()["contacts"]}
    assert primary == {"Alice": False, "Bob": True}

    fetched = (await client.get(f"/api/crm/clients/{client_id}", headers=org)).json()
    assert [c["name"] for c in fetched["contacts"] if c["is_primary"]] == ["Bob"]


@pytest.mark.asyncio
async def test_link_contacts_requires_ids(client, org):
    created = await client.post(
        "/api/crm/clients",
        json={"name": "Umbrella", "contact_email": "info@umbrella.io"},
        headers=org,
    )
    resp = await client.post(
        f"/api/crm/clients/{created.json()['id']}/contacts",
        json={"contact_ids": []},
        headers=org,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_contact_tags(client, org):
    vip = (await client.post("/api/crm/tags", json={"name": "VIP", "color": "#ff0000"}, headers=org)).json()
    partner = (await client.post("/api/crm/tags", json={"name": "Partner"}, headers=org)).json()

    contact = await create_contact(client, org, "Carol", tag_ids=[vip["id"]])
    assert [t["name"] for t in contact["tags"]] == ["VIP"]

    resp = await client.put(
        f"/api/crm/contacts/{contact['id']}/tags",
        json={"tag_ids": [partner["id"]]},
        headers=org,
    )
    assert resp.status_code == 200
    assert [t["name"] for t in resp.json()["tags"]] == ["Partner"]

    tagged = (await client.get("/api/crm/contacts", params={"tag_id": partner["id"]}, headers=org)).json()
    assert [c["name"] for c in tagged] == ["Carol"]


@pytest.mark.asyncio
async def test_contact_rejects_unknown_tag(client, org):
    resp = await client.post(
        "/api/crm/contacts",
        json={"name": "Dave", "tag_ids": ["00000000-0000-0000-0000-000000000001"]},
        headers=org,
    )
    assert resp.status_code == 400
    assert "Unknown tag" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_contact_activities(client, org):
    contact = await create_contact(client, org, "Erin")
    resp = await client.post(
        f"/api/crm/contacts/{contact['id']}/activities",
        json={"activity_type": "call", "title": "Intro call", "call_duration": 15},
        headers=org,
    )
    assert resp.status_code == 201
    activity_id = resp.json()["id"]

    calls = (await client.get("/api/crm/activities", params={"activity_type": "call"}, headers=org)).json()
    assert [a["title"] for a in calls] == ["Intro call"]

    assert (await client.delete(f"/api/crm/activities/{activity_id}", headers=org)).status_code == 204
    assert (await client.get(f"/api/crm/contacts/{contact['id']}/activities", headers=org)).json() == []


@pytest.mark.asyncio
async def test_contact_email_must_be_valid(client, org):
    resp = await client.post("/api/crm/contacts", json={"name": "Frank", "email": "frank@"}, headers=org)
    assert resp.status_code == 400

    contact = await create_contact(client, org, "Frank", email="frank@globex.io")
    assert contact["email"] == "frank@globex.io"
