from unittest.mock import AsyncMock, patch

import pytest

from soluly.integrations.functions import FunctionCallError


async def receive(client, headers, **overrides):
    payload = {
        "sender_email": "Pat@Customer.io",
        "sender_name": "Pat",
        "subject": "Export is broken",
        "body": "The CSV export button does nothing.",
    }
    payload.update(overrides)
    with patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()) as broadcast:
        resp = await client.post("/api/emails", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    broadcast.assert_awaited_once_with(headers["X-Organization-Id"])
    return resp.json()


@pytest.mark.asyncio
async def test_receive_email_is_pending(client, org):
    email = await receive(client, org)
    assert email["status"] == "pending"
    assert email["review_status"] == "pending"
    assert email["sender_email"] == "pat@customer.io"

    stats = (await client.get("/api/emails/stats", headers=org)).json()
    assert stats["total"] == 1
    assert stats["pending"] == 1


@pytest.mark.asyncio
async def test_categorize_email(client, org):
    email = await receive(client, org)
    result = {
        "success": True,
        "category": "feature_request",
        "confidence": 0.92,
        "summary": "Customer wants export fixed",
        "suggested_title": "Fix CSV export",
    }
    with patch("soluly.api.emails.functions.process_email", new=AsyncMock(return_value=result)), \
            patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        resp = await client.post(f"/api/emails/{email['id']}/categorize", headers=org)

    assert resp.status_code == 201
    categorized = resp.json()
    assert categorized["status"] == "processed"
    assert categorized["category"] == "feature_request"
    assert categorized["confidence_score"] == 0.92
    assert categorized["ai_suggested_title"] == "Fix CSV export"

    stats = (await client.get("/api/emails/stats", headers=org)).json()
    assert stats["needs_review"] == 1
    assert stats["by_category"]["feature_request"] == 1


@pytest.mark.asyncio
async def test_categorize_unknown_category_falls_back_to_other(client, org):
    email = await receive(client, org)
    result = {"success": True, "category": "spam", "confidence": 0.4}
    with patch("soluly.api.emails.functions.process_email", new=AsyncMock(return_value=result)), \
            patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        resp = await client.post(f"/api/emails/{email['id']}/categorize", headers=org)
    assert resp.json()["category"] == "other"


@pytest.mark.asyncio
async def test_categorize_failure_marks_email_failed(client, org):
    email = await receive(client, org)
    result = {"success": False, "error": "model unavailable"}
    with patch("soluly.api.emails.functions.process_email", new=AsyncMock(return_value=result)), \
            patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        resp = await client.post(f"/api/emails/{email['id']}/categorize", headers=org)

    assert resp.status_code == 502
    assert resp.json()["detail"] == "model unavailable"
    stored = (await client.get(f"/api/emails/{email['id']}", headers=org)).json()
    assert stored["status"] == "failed"


@pytest.mark.asyncio
async def test_categorize_transport_error_leaves_email_pending(client, org):
    email = await receive(client, org)
    failing = AsyncMock(side_effect=FunctionCallError("process-email", "timed out"))
    with patch("soluly.api.emails.functions.process_email", new=failing):
        resp = await client.post(f"/api/emails/{email['id']}/categorize", headers=org)

    assert resp.status_code == 502
    stored = (await client.get(f"/api/emails/{email['id']}", headers=org)).json()
    assert stored["status"] == "pending"


@pytest.mark.asyncio
async def test_create_ticket_from_email(client, org):
    email = await receive(client, org)
    project = (await client.post("/api/projects", json={"name": "Portal"}, headers=org)).json()

    with patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        resp = await client.post(
            f"/api/emails/{email['id']}/create-record",
            json={
                "category": "ticket",
                "title": "Export broken",
                "priority": "high",
                "project_id": project["id"],
                "ticket_category": "feature",
            },
            headers=org,
        )

    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["record_type"] == "ticket"
    assert created["display_id"] == "TKT-001"
    assert created["email"]["review_status"] == "approved"
    assert created["email"]["linked_ticket_id"] == created["record_id"]
    assert created["email"]["linked_project_id"] == project["id"]

    ticket = (await client.get(f"/api/tickets/{created['record_id']}", headers=org)).json()
    assert ticket["category"] == "feature"
    assert ticket["description"].startswith("**From Email:** Pat\n**Subject:** Export is broken")


@pytest.mark.asyncio
async def test_create_feedback_from_email_uses_extracted_sentiment(client, org):
    email = await receive(client, org)
    result = {"success": True, "category": "feedback", "confidence": 0.8, "extracted_data": {"sentiment": "negative"}}
    with patch("soluly.api.emails.functions.process_email", new=AsyncMock(return_value=result)), \
            patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        await client.post(f"/api/emails/{email['id']}/categorize", headers=org)
        resp = await client.post(
            f"/api/emails/{email['id']}/create-record",
            json={"category": "feedback", "title": "Unhappy with export"},
            headers=org,
        )

    feedback = (await client.get(f"/api/feedback/{resp.json()['record_id']}", headers=org)).json()
    assert feedback["sentiment"] == "negative"
    assert feedback["from_contact"] == "Pat"


@pytest.mark.asyncio
async def test_create_record_rejects_other_category(client, org):
    email = await receive(client, org)
    resp = await client.post(
        f"/api/emails/{email['id']}/create-record",
        json={"category": "other", "title": "Nothing"},
        headers=org,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_dismiss_and_filter(client, org):
    first = await receive(client, org)
    await receive(client, org, subject="Invoice question", sender_email="finance@customer.io")

    with patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()):
        resp = await client.post(f"/api/emails/{first['id']}/dismiss", headers=org)
    assert resp.json()["review_status"] == "dismissed"

    dismissed = (await client.get("/api/emails", params={"review_status": "dismissed"}, headers=org)).json()
    assert [e["id"] for e in dismissed] == [first["id"]]

    found = (await client.get("/api/emails", params={"search": "invoice"}, headers=org)).json()
    assert [e["subject"] for e in found] == ["Invoice question"]


@pytest.mark.asyncio
async def test_delete_email_notifies(client, org):
    email = await receive(client, org)
    with patch("soluly.api.emails.broadcast_emails_changed", new=AsyncMock()) as broadcast:
        resp = await client.delete(f"/api/emails/{email['id']}", headers=org)
    assert resp.status_code == 204
    broadcast.assert_awaited_once()
