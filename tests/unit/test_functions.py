from unittest.mock import AsyncMock, patch

import httpx
import pytest

from soluly.integrations.functions import FunctionCallError, FunctionsClient

REQUEST = httpx.Request("POST", "https://functions.test/process-email")


@pytest.mark.asyncio
async def test_invoke_posts_with_bearer_token():
    client = FunctionsClient(base_url="https://functions.test/", api_key="secret")
    response = httpx.Response(200, json={"success": True, "category": "ticket"}, request=REQUEST)

    with patch("soluly.integrations.functions.httpx.AsyncClient.post", new=AsyncMock(return_value=response)) as post:
        data = await client.process_email("abc")

    assert data["category"] == "ticket"
    args, kwargs = post.call_args
    assert args[0] == "https://functions.test/process-email"
    assert kwargs["json"] == {"emailId": "abc"}
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}


@pytest.mark.asyncio
async def test_invoke_without_base_url(monkeypatch):
    monkeypatch.delenv("FUNCTIONS_BASE_URL", raising=False)
    with pytest.raises(FunctionCallError, match="not configured"):
        await FunctionsClient().invoke("process-email", {})


@pytest.mark.asyncio
async def test_invoke_maps_http_errors():
    client = FunctionsClient(base_url="https://functions.test")
    response = httpx.Response(500, json={"error": "boom"}, request=REQUEST)

    with patch("soluly.integrations.functions.httpx.AsyncClient.post", new=AsyncMock(return_value=response)):
        with pytest.raises(FunctionCallError) as exc_info:
            await client.invoke("process-email", {})

    assert exc_info.value.status_code == 500
    assert exc_info.value.function == "process-email"


@pytest.mark.asyncio
async def test_invoke_maps_timeouts():
    client = FunctionsClient(base_url="https://functions.test")
    failing = AsyncMock(side_effect=httpx.ReadTimeout("slow", request=REQUEST))

    with patch("soluly.integrations.functions.httpx.AsyncClient.post", new=failing):
        with pytest.raises(FunctionCallError, match="timed out"):
            await client.invoke("process-email", {})


@pytest.mark.asyncio
async def test_invoke_rejects_non_object_body():
    client = FunctionsClient(base_url="https://functions.test")
    response = httpx.Response(200, json=["not", "an", "object"], request=REQUEST)

    with patch("soluly.integrations.functions.httpx.AsyncClient.post", new=AsyncMock(return_value=response)):
        with pytest.raises(FunctionCallError, match="unexpected body"):
            await client.invoke("process-email", {})


@pytest.mark.asyncio
async def test_send_invite_email_payload():
    client = FunctionsClient(base_url="https://functions.test")
    response = httpx.Response(200, json={"success": True}, request=REQUEST)

    with patch("soluly.integrations.functions.httpx.AsyncClient.post", new=AsyncMock(return_value=response)) as post:
        await client.send_invite_email("new@acme.io", "Acme", "tok", "member", "2024-01-08T00:00:00+00:00")

    payload = post.call_args.kwargs["json"]
    assert payload == {
        "email": "new@acme.io",
        "organizationName": "Acme",
        "inviteToken": "tok",
        "role": "member",
        "expiresAt": "2024-01-08T00:00:00+00:00",
    }
