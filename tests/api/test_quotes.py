import pytest


async def create_quote(client, headers, **overrides):
    payload = {"title": "Website rebuild", "company_name": "Globex", "value": 12000}
    payload.update(overrides)
    resp = await client.post("/api/quotes", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_quote_sets_stage_from_status(client, org):
    draft = await create_quote(client, org)
    assert draft["status"] == "draft"
    assert draft["stage"] == 25

    sent = await create_quote(client, org, status="sent")
    assert sent["stage"] == 50

    explicit = await create_quote(client, org, status="sent", stage=60)
    assert explicit["stage"] == 60


@pytest.mark.asyncio
async def test_accepted_quote_only_in_won_tab(client, org):
    quote = await create_quote(client, org, status="negotiating")

    resp = await client.post(f"/api/quotes/{quote['id']}/accept", headers=org)
    assert resp.status_code == 201
    accepted = resp.json()
    assert accepted["status"] == "accepted"
    assert accepted["stage"] == 100
    assert accepted["last_activity"] is not None

    active = (await client.get("/api/quotes/unified", headers=org)).json()
    assert active["rows"] == []
    assert active["counts"]["won"] == 1
    assert active["counts"]["won_value"] == 12000

    won = (await client.get("/api/quotes/unified", params={"tab": "won"}, headers=org)).json()
    assert [r["id"] for r in won["rows"]] == [quote["id"]]


@pytest.mark.asyncio
async def test_reject_quote(client, org):
    quote = await create_quote(client, org)
    resp = await client.post(f"/api/quotes/{quote['id']}/reject", headers=org)
    assert resp.json()["status"] == "rejected"
    assert resp.json()["stage"] == 0

    lost = (await client.get("/api/quotes/unified", params={"tab": "lost"}, headers=org)).json()
    assert len(lost["rows"]) == 1


@pytest.mark.asyncio
async def test_status_change_moves_stage(client, org):
    quote = await create_quote(client, org)
    resp = await client.patch(f"/api/quotes/{quote['id']}", json={"status": "sent"}, headers=org)
    assert resp.json()["stage"] == 50

    resp = await client.patch(f"/api/quotes/{quote['id']}", json={"status": "negotiating", "stage": 80}, headers=org)
    assert resp.json()["stage"] == 80


@pytest.mark.asyncio
async def test_quote_activities_and_tasks(client, org):
    quote = await create_quote(client, org)

    resp = await client.post(
        f"/api/quotes/{quote['id']}/activities",
        json={"type": "call", "description": "Discussed scope", "duration": "30m"},
        headers=org,
    )
    assert resp.status_code == 201
    activities = (await client.get(f"/api/quotes/{quote['id']}/activities", headers=org)).json()
    assert [a["description"] for a in activities] == ["Discussed scope"]
    refreshed = (await client.get(f"/api/quotes/{quote['id']}", headers=org)).json()
    assert refreshed["last_activity"] is not None

    task = await client.post(
        f"/api/quotes/{quote['id']}/tasks",
        json={"title": "Send revised estimate", "due_date": "2024-07-01"},
        headers=org,
    )
    task_id = task.json()["id"]
    done = await client.patch(f"/api/quotes/tasks/{task_id}", json={"completed": True}, headers=org)
    assert done.json()["completed"] is True

    assert (await client.delete(f"/api/quotes/tasks/{task_id}", headers=org)).status_code == 204
    assert (await client.get(f"/api/quotes/{quote['id']}/tasks", headers=org)).json() == []


@pytest.mark.asyncio
async def test_delete_quote_with_children(client, org):
    quote = await create_quote(client, org)
    await client.post(
        f"/api/quotes/{quote['id']}/tasks",
        json={"title": "Follow up", "due_date": "2024-07-01"},
        headers=org,
    )
    resp = await client.delete(f"/api/quotes/{quote['id']}", headers=org)
    assert resp.status_code == 204
    assert (await client.get(f"/api/quotes/{quote['id']}", headers=org)).status_code == 404


@pytest.mark.asyncio
async def test_update_rejects_null_for_required_field(client, org):
    quote = await create_quote(client, org)

    resp = await client.patch(f"/api/quotes/{quote['id']}", json={"title": None}, headers=org)
    assert resp.status_code == 400
    assert "title" in resp.json()["detail"]

    unchanged = (await client.get(f"/api/quotes/{quote['id']}", headers=org)).json()
    assert unchanged["title"] == "Website rebuild"

    cleared = await client.patch(f"/api/quotes/{quote['id']}", json={"description": None}, headers=org)
    assert cleared.status_code == 200
    assert cleared.json()["description"] is None
