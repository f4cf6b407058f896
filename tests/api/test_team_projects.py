import pytest


@pytest.mark.asyncio
async def test_team_member_crud(client, org):
    resp = await client.post(
        "/api/team",
        json={"name": "Riley", "email": "Riley@Acme.io", "role": "developer", "hourly_rate": 80},
        headers=org,
    )
    assert resp.status_code == 201
    member = resp.json()
    assert member["email"] == "riley@acme.io"
    assert member["display_id"] == "TM-002"

    updated = await client.patch(f"/api/team/{member['id']}", json={"status": "inactive"}, headers=org)
    assert updated.json()["status"] == "inactive"

    active = (await client.get("/api/team", params={"status": "active"}, headers=org)).json()
    assert [m["name"] for m in active] == ["Olivia Owner"]

    assert (await client.delete(f"/api/team/{member['id']}", headers=org)).status_code == 204


@pytest.mark.asyncio
async def test_team_member_requires_valid_email(client, org):
    resp = await client.post("/api/team", json={"name": "Bad", "email": "not-an-email"}, headers=org)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_project_crud(client, org):
    resp = await client.post(
        "/api/projects",
        json={"name": "Portal", "client_name": "Globex", "value": 30000, "budget": 12000, "priority": "high"},
        headers=org,
    )
    assert resp.status_code == 201
    project = resp.json()
    assert project["status"] == "pending"
    assert project["has_maintenance"] is False

    updated = await client.patch(
        f"/api/projects/{project['id']}",
        json={"status": "active", "progress": 40},
        headers=org,
    )
    assert updated.json()["progress"] == 40

    bad = await client.patch(f"/api/projects/{project['id']}", json={"progress": 140}, headers=org)
    assert bad.status_code == 400

    assert (await client.delete(f"/api/projects/{project['id']}", headers=org)).status_code == 204
    assert (await client.get(f"/api/projects/{project['id']}", headers=org)).status_code == 404
