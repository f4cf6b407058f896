import pytest


@pytest.mark.asyncio
async def test_list_templates(client):
    resp = await client.get("/api/reports/templates")
    assert resp.status_code == 200
    ids = [t["id"] for t in resp.json()]
    assert "projects-all" in ids
    assert "team-by-role" in ids

    sales = (await client.get("/api/reports/templates", params={"category": "sales"})).json()
    assert {t["category"] for t in sales} == {"sales"}


@pytest.mark.asyncio
async def test_projects_report_view(client, org):
    await client.post("/api/projects", json={"name": "Alpha", "status": "active"}, headers=org)
    await client.post("/api/projects", json={"name": "Beta", "status": "completed"}, headers=org)

    resp = await client.get("/api/reports/projects-all", headers=org)
    assert resp.status_code == 200
    view = resp.json()
    assert view["type"] == "table"
    assert {row["name"] for row in view["data"]} == {"Alpha", "Beta"}


@pytest.mark.asyncio
async def test_unknown_report_template(client, org):
    resp = await client.get("/api/reports/no-such-report", headers=org)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_report_rejects_inverted_range(client, org):
    resp = await client.get(
        "/api/reports/contacts-recent",
        params={"date_from": "2024-05-01", "date_to": "2024-04-01"},
        headers=org,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_project_detail_unknown_project(client, org):
    resp = await client.get(
        "/api/reports/project-detail",
        params={"project_id": "00000000-0000-0000-0000-000000000000"},
        headers=org,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_csv_download(client, org):
    await client.post("/api/projects", json={"name": "Alpha, Inc site"}, headers=org)

    resp = await client.get("/api/reports/projects-all/csv", headers=org)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    lines = resp.text.split("\n")
    assert lines[0] == "display_id,name,status,priority,start_date,end_date"
    assert '"Alpha, Inc site"' in lines[1]


@pytest.mark.asyncio
async def test_pdf_download(client, org):
    await client.post("/api/projects", json={"name": "Alpha", "budget": 2500}, headers=org)

    resp = await client.get("/api/reports/projects-budget/pdf", headers=org)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/pdf")
    assert resp.content.startswith(b"%PDF")
