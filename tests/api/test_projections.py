import pytest


@pytest.mark.asyncio
async def test_goal_crud_and_duplicate_quarter(client, org):
    resp = await client.post(
        "/api/projections/goals",
        json={"year": 2024, "quarter": 2, "revenue_target": 50000, "projects_target": 4},
        headers=org,
    )
    assert resp.status_code == 201
    goal_id = resp.json()["id"]

    dup = await client.post("/api/projections/goals", json={"year": 2024, "quarter": 2}, headers=org)
    assert dup.status_code == 400

    updated = await client.patch(f"/api/projections/goals/{goal_id}", json={"revenue_target": 60000}, headers=org)
    assert updated.json()["revenue_target"] == 60000

    goals = (await client.get("/api/projections/goals", params={"year": 2024}, headers=org)).json()
    assert [g["quarter"] for g in goals] == [2]

    fetched = await client.get(f"/api/projections/goals/{goal_id}", headers=org)
    assert fetched.json()["revenue_target"] == 60000

    assert (await client.delete(f"/api/projections/goals/{goal_id}", headers=org)).status_code == 204
    assert (await client.get(f"/api/projections/goals/{goal_id}", headers=org)).status_code == 404


@pytest.mark.asyncio
async def test_goal_progress_counts_completed_projects(client, org):
    await client.post(
        "/api/projects",
        json={"name": "Shop", "status": "completed", "value": 20000, "budget": 5000, "end_date": "2024-05-15"},
        headers=org,
    )
    await client.post(
        "/api/projects",
        json={"name": "Later", "status": "completed", "value": 9999, "end_date": "2024-08-01"},
        headers=org,
    )
    goal = await client.post(
        "/api/projections/goals",
        json={"year": 2024, "quarter": 2, "revenue_target": 40000, "projects_target": 2},
        headers=org,
    )

    resp = await client.get(f"/api/projections/goals/{goal.json()['id']}/progress", headers=org)
    assert resp.status_code == 200
    body = resp.json()
    assert body["start"] == "2024-04-01"
    assert body["end"] == "2024-06-30"
    assert body["progress"]["revenue"]["actual"] == 20000
    assert body["progress"]["revenue"]["percentage"] == 50
    assert body["progress"]["projects"]["actual"] == 1
    assert body["progress"]["profit_margin"]["actual"] == 75


@pytest.mark.asyncio
async def test_business_costs(client, org):
    resp = await client.post(
        "/api/projections/costs",
        json={"description": "Office rent", "category": "rent", "amount": 1500, "date": "2024-03-01", "recurring": True},
        headers=org,
    )
    assert resp.status_code == 201
    assert resp.json()["display_id"].endswith("-001")
    by_display = await client.get(
        f"/api/projections/costs/by-display-id/{resp.json()['display_id'].lower()}", headers=org,
    )
    assert by_display.json()["id"] == resp.json()["id"]
    await client.post(
        "/api/projections/costs",
        json={"description": "Ads", "category": "marketing", "amount": 300, "date": "2024-04-10"},
        headers=org,
    )

    rent = (await client.get("/api/projections/costs", params={"category": "rent"}, headers=org)).json()
    assert [c["description"] for c in rent] == ["Office rent"]

    april = (await client.get("/api/projections/costs", params={"date_from": "2024-04-01"}, headers=org)).json()
    assert [c["description"] for c in april] == ["Ads"]


@pytest.mark.asyncio
async def test_calculators_parse_query_leniently(client):
    resp = await client.get(
        "/api/projections/breakeven",
        params={"fixed_costs": "10000", "avg_project_value": "5000", "variable_cost_percent": "20%"},
    )
    assert resp.json() == {"breakeven_projects": 3, "breakeven_revenue": 15000}

    scenario = (await client.get(
        "/api/projections/scenario",
        params={"target_revenue": "abc", "avg_project_value": "1000", "profit_margin": "30"},
    )).json()
    assert scenario["target_revenue"] == 0
    assert scenario["projects_needed"] == 0


@pytest.mark.asyncio
async def test_kpis_and_maintenance(client, org):
    project = (await client.post(
        "/api/projects",
        json={"name": "Retainer", "status": "active", "value": 8000},
        headers=org,
    )).json()
    resp = await client.patch(
        f"/api/projects/{project['id']}/maintenance",
        json={"has_maintenance": True, "maintenance_amount": 600, "maintenance_frequency": "quarterly"},
        headers=org,
    )
    assert resp.status_code == 200

    maintenance = (await client.get("/api/projections/maintenance", headers=org)).json()
    assert maintenance["monthly_total"] == 200
    assert maintenance["yearly_total"] == 2400

    kpis = (await client.get("/api/projections/kpis", params={"period_months": "6"}, headers=org)).json()
    assert kpis["period_months"] == 6
    assert kpis["active_projects"] == 1
    assert kpis["monthly_recurring"] == 200

    off = await client.patch(
        f"/api/projects/{project['id']}/maintenance",
        json={"has_maintenance": False, "maintenance_amount": 600},
        headers=org,
    )
    assert off.json()["maintenance_amount"] == 0
