"""Client for the hosted server-side functions.

Functions are plain HTTP endpoints under ``FUNCTIONS_BASE_URL``; each call
is a single POST with a bearer token. There is no retry: any transport or
HTTP failure surfaces as ``FunctionCallError``, which the app maps to 502.
"""

import logging
from os import getenv
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("Soluly.functions")

DEFAULT_TIMEOUT = 15.0


class FunctionCallError(Exception):
    """A server-side function could not be reached or reported failure."""
    
    def __init__(self, function: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{function}: {message}")
        self.function = function
        self.message = message
        self.status_code = status_code


class FunctionsClient:
    """Invokes named functions. Configuration is read on every call."""
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._base_url = base_url
        self._api_key = api_key
        self.timeout = timeout
    
    @property
    def base_url(self) -> Optional[str]:
        return self._base_url or getenv("FUNCTIONS_BASE_URL")
    
    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or getenv("FUNCTIONS_API_KEY")
    
    async def invoke(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` to function ``name`` and return its JSON body."""
        if not self.base_url:
            raise FunctionCallError(name, "FUNCTIONS_BASE_URL is not configured")
        
        url = f"{self.base_url.rstrip('/')}/{name}"
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        
        logger.info(f"Invoking function {name}")
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
                logger.debug(f"Function {name} response status: {response.status_code}")
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Function {name} returned HTTP {e.response.status_code}")
                raise FunctionCallError(
                    name,
                    f"returned HTTP {e.response.status_code}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.TimeoutException as e:
                logger.error(f"Timeout invoking function {name}")
                raise FunctionCallError(name, "timed out") from e
            except httpx.RequestError as e:
                logger.error(f"Request error invoking function {name}: {e}")
                raise FunctionCallError(name, f"request failed: {e}") from e
            except ValueError as e:
                raise FunctionCallError(name, "returned a non-JSON body") from e
        
        if not isinstance(data, dict):
            raise FunctionCallError(name, "returned an unexpected body")
        return data
    
    async def process_email(self, email_id: str) -> Dict[str, Any]:
        """Categorize an inbox email.
        
        The function answers with ``success``, ``category``, ``confidence``
        and optionally ``summary``/``suggested_title``; ``success: false``
        carries an ``error`` message.
        """
        return await self.invoke("process-email", {"emailId": email_id})
    
    async def send_invite_email(
        self,
        email: str,
        organization_name: str,
        token: str,
        role: str,
        expires_at: str,
    ) -> Dict[str, Any]:
        return await self.invoke("send-invite-email", {
            "email": email,
            "organizationName": organization_name,
            "inviteToken": token,
            "role": role,
            "expiresAt": expires_at,
        })


# Shared client used by the controllers
functions = FunctionsClient()
