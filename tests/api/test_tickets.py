import uuid

import pytest


async def create_project(client, headers, name="Website"):
    resp = await client.post("/api/projects", json={"name": name}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_ticket_with_project(client, org):
    project = await create_project(client, org)
    resp = await client.post(
        "/api/tickets",
        json={"title": "Checkout crashes", "category": "feedback", "priority": "high", "project_id": project["id"]},
        headers=org,
    )
    assert resp.status_code == 201
    ticket = resp.json()
    assert ticket["display_id"] == "TKT-001"
    assert ticket["status"] == "open"
    assert ticket["project_name"] == "Website"


@pytest.mark.asyncio
async def test_ticket_rejects_foreign_project(client, org):
    other = await client.post("/api/organizations", json={"name": "Other", "slug": f"other-{uuid.uuid4().hex[:8]}"})
    other_headers = {"X-Organization-Id": other.json()["id"]}
    foreign = await create_project(client, other_headers)

    resp = await client.post(
        "/api/tickets",
        json={"title": "Sneaky", "category": "feature", "project_id": foreign["id"]},
        headers=org,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_ticket_filters_and_update(client, org):
    await client.post("/api/tickets", json={"title": "Add export", "category": "feature"}, headers=org)
    created = await client.post("/api/tickets", json={"title": "Price please", "category": "quote"}, headers=org)
    ticket_id = created.json()["id"]

    resp = await client.get("/api/tickets", params={"category": "quote"}, headers=org)
    assert [t["title"] for t in resp.json()] == ["Price please"]

    resp = await client.get("/api/tickets", params={"search": "EXPORT"}, headers=org)
    assert [t["title"] for t in resp.json()] == ["Add export"]

    updated = await client.patch(f"/api/tickets/{ticket_id}", json={"status": "closed"}, headers=org)
    assert updated.status_code == 200
    assert updated.json()["status"] == "closed"

    cleared = await client.patch(f"/api/tickets/{ticket_id}", json={"category": None}, headers=org)
    assert cleared.status_code == 400


@pytest.mark.asyncio
async def test_delete_ticket(client, org):
    created = await client.post("/api/tickets", json={"title": "Temp", "category": "feedback"}, headers=org)
    ticket_id = created.json()["id"]

    resp = await client.delete(f"/api/tickets/{ticket_id}", headers=org)
    assert resp.status_code == 204
    assert (await client.get(f"/api/tickets/{ticket_id}", headers=org)).status_code == 404


@pytest.mark.asyncio
async def test_unified_feature_view(client, org):
    project = await create_project(client, org)
    feature = await client.post(
        "/api/feature-requests",
        json={"title": "Dark mode", "project_ids": [project["id"]]},
        headers=org,
    )
    assert feature.status_code == 201
    assert feature.json()["project_names"] == ["Website"]
    await client.post("/api/tickets", json={"title": "Bulk export", "category": "feature"}, headers=org)
    await client.post("/api/tickets", json={"title": "Unrelated", "category": "feedback"}, headers=org)

    resp = await client.get("/api/feature-requests/unified", headers=org)
    assert resp.status_code == 200
    listing = resp.json()
    assert len(listing["rows"]) == 2
    assert listing["counts"]["all"] == 2

    resp = await client.get("/api/feature-requests/unified", params={"tab": "feature_requests"}, headers=org)
    rows = resp.json()["rows"]
    assert len(rows) == 1
    assert rows[0]["source"] == "feature_request"

    resp = await client.get("/api/feature-requests/unified", params={"tab": "won"}, headers=org)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_feature_request_project_replacement(client, org):
    first = await create_project(client, org, "Website")
    second = await create_project(client, org, "App")
    feature = await client.post(
        "/api/feature-requests",
        json={"title": "SSO", "project_ids": [first["id"]]},
        headers=org,
    )
    feature_id = feature.json()["id"]

    resp = await client.patch(
        f"/api/feature-requests/{feature_id}",
        json={"project_ids": [first["id"], second["id"]]},
        headers=org,
    )
    assert resp.status_code == 200
    assert sorted(resp.json()["project_names"]) == ["App", "Website"]


@pytest.mark.asyncio
async def test_unified_feedback_view_sentiment(client, org):
    await client.post(
        "/api/feedback",
        json={"title": "Love the new UI", "sentiment": "positive", "category": "ui-ux"},
        headers=org,
    )
    await client.post(
        "/api/tickets",
        json={"title": "Too slow", "category": "feedback", "priority": "high"},
        headers=org,
    )

    resp = await client.get("/api/feedback/unified", headers=org)
    counts = resp.json()["counts"]
    assert counts["all"] == 2
    assert counts["positive"] == 1
    assert counts["negative"] == 1
