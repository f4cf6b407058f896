import uuid
from unittest.mock import AsyncMock, patch

import pytest

from soluly.integrations.functions import FunctionCallError


@pytest.mark.asyncio
async def test_create_organization_with_owner(client):
    slug = f"studio-{uuid.uuid4().hex[:8]}"
    resp = await client.post(
        "/api/organizations",
        json={"name": "Studio", "slug": slug, "owner_name": "Sam", "owner_email": "Sam@Studio.io"},
    )
    assert resp.status_code == 201
    headers = {"X-Organization-Id": resp.json()["id"]}

    team = (await client.get("/api/team", headers=headers)).json()
    assert len(team) == 1
    assert team[0]["is_owner"] is True
    assert team[0]["email"] == "sam@studio.io"


@pytest.mark.asyncio
async def test_slug_validation_and_uniqueness(client, org):
    bad = await client.post("/api/organizations", json={"name": "Bad", "slug": "Bad Slug"})
    assert bad.status_code == 400
    assert bad.json()["detail"] == "URL can only contain lowercase letters, numbers, and hyphens"

    current = (await client.get("/api/settings/organization", headers=org)).json()
    taken = await client.post("/api/organizations", json={"name": "Dup", "slug": current["slug"]})
    assert taken.status_code == 400
    assert taken.json()["detail"] == "This URL is already taken"


@pytest.mark.asyncio
async def test_update_organization(client, org):
    resp = await client.patch("/api/settings/organization", json={"name": "Acme Labs"}, headers=org)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Acme Labs"

    cleared = await client.patch("/api/settings/organization", json={"name": None}, headers=org)
    assert cleared.status_code == 400
    assert (await client.get("/api/settings/organization", headers=org)).json()["name"] == "Acme Labs"


@pytest.mark.asyncio
async def test_invitation_lifecycle(client, org):
    send = AsyncMock(return_value={"success": True})
    with patch("soluly.api.organizations.functions.send_invite_email", new=send):
        resp = await client.post(
            "/api/settings/invitations",
            json={"email": "New.Person@Acme.io", "role": "admin"},
            headers=org,
        )
    assert resp.status_code == 201
    invitation = resp.json()
    assert invitation["email"] == "new.person@acme.io"
    assert invitation["status"] == "pending"
    token = send.call_args.kwargs["token"]
    assert send.call_args.kwargs["organization_name"] == "Acme Studio"

    pending = (await client.get("/api/settings/invitations", headers=org)).json()
    assert [i["email"] for i in pending] == ["new.person@acme.io"]

    details = (await client.get(f"/api/invitations/{token}")).json()
    assert details["organization_name"] == "Acme Studio"
    assert details["is_expired"] is False

    accepted = await client.post(f"/api/invitations/{token}/accept", json={"name": "New Person"})
    assert accepted.status_code == 201
    assert accepted.json()["organization_id"] == org["X-Organization-Id"]

    team = (await client.get("/api/team", headers=org)).json()
    member = next(m for m in team if m["email"] == "new.person@acme.io")
    assert member["role"] == "admin"
    assert (await client.get("/api/settings/invitations", headers=org)).json() == []

    again = await client.post(f"/api/invitations/{token}/accept", json={"name": "New Person"})
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_invitation_rejects_members_and_duplicates(client, org):
    with patch("soluly.api.organizations.functions.send_invite_email", new=AsyncMock(return_value={})):
        member = await client.post(
            "/api/settings/invitations", json={"email": "olivia@acme.io"}, headers=org,
        )
        assert member.status_code == 400
        assert member.json()["detail"] == "This email is already a member of your organization"

        invalid = await client.post("/api/settings/invitations", json={"email": "nope"}, headers=org)
        assert invalid.json()["detail"] == "Please enter a valid email address"

        first = await client.post("/api/settings/invitations", json={"email": "x@acme.io"}, headers=org)
        assert first.status_code == 201
        dup = await client.post("/api/settings/invitations", json={"email": "x@acme.io"}, headers=org)
        assert dup.json()["detail"] == "An invitation has already been sent to this email"


@pytest.mark.asyncio
async def test_resend_issues_new_token(client, org):
    send = AsyncMock(return_value={})
    with patch("soluly.api.organizations.functions.send_invite_email", new=send):
        created = await client.post("/api/settings/invitations", json={"email": "y@acme.io"}, headers=org)
        first_token = send.call_args.kwargs["token"]
        resp = await client.post(f"/api/settings/invitations/{created.json()['id']}/resend", headers=org)

    assert resp.status_code == 201
    assert send.call_args.kwargs["token"] != first_token
    assert (await client.get(f"/api/invitations/{first_token}")).status_code == 404


@pytest.mark.asyncio
async def test_expired_invitation_cannot_be_accepted(client, org):
    send = AsyncMock(return_value={})
    with patch("soluly.api.organizations.functions.send_invite_email", new=send), \
            patch("soluly.api.organizations.INVITE_EXPIRY_DAYS", -1):
        await client.post("/api/settings/invitations", json={"email": "late@acme.io"}, headers=org)
    token = send.call_args.kwargs["token"]

    resp = await client.post(f"/api/invitations/{token}/accept", json={"name": "Late"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "This invitation has expired"
    details = (await client.get(f"/api/invitations/{token}")).json()
    assert details["status"] == "expired"


@pytest.mark.asyncio
async def test_invite_email_failure_keeps_invitation(client, org):
    failing = AsyncMock(side_effect=FunctionCallError("send-invite-email", "timed out"))
    with patch("soluly.api.organizations.functions.send_invite_email", new=failing):
        resp = await client.post("/api/settings/invitations", json={"email": "z@acme.io"}, headers=org)
    assert resp.status_code == 502
    pending = (await client.get("/api/settings/invitations", headers=org)).json()
    assert [i["email"] for i in pending] == ["z@acme.io"]


@pytest.mark.asyncio
async def test_owner_cannot_be_removed(client, org):
    team = (await client.get("/api/team", headers=org)).json()
    owner = next(m for m in team if m["is_owner"])
    resp = await client.delete(f"/api/team/{owner['id']}", headers=org)
    assert resp.status_code == 400
