"""HTTP adapter for Microsoft Graph API operations."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from ..errors import ProviderError, SessionExpiredError, TransientUploadError

GRAPH_API_URL = "https://graph.microsoft.com/v1.0"

# Status codes worth retrying even when Graph attaches an error code
TRANSIENT_STATUS = {408, 416, 429}


def raise_for_graph_error(response: httpx.Response, resuming: bool = False) -> None:
    """
    Map a Graph error response onto the driveup error taxonomy.

    4xx with an ``error.code`` body is permanent (ProviderError); 5xx,
    throttling, timeouts and bodies without a code are transient. A 404
    while resuming means the upload session expired.
    """
    status = response.status_code
    if status < 400:
        return

    if resuming and status == 404:
        raise SessionExpiredError("upload session expired or not found", status=status)

    if status >= 500 or status in TRANSIENT_STATUS:
        raise TransientUploadError(
            f"Graph returned {status} on {response.request.method} {response.request.url.path}",
            status=status,
        )

    try:
        error = response.json().get("error") or {}
    except ValueError:
        error = {}
    if not isinstance(error, dict):
        error = {"code": str(error)}

    code = error.get("code")
    if code:
        raise ProviderError(code, error.get("message", ""), status=status)
    raise TransientUploadError(f"Graph returned {status}: {response.text[:200]}", status=status)


class GraphAPIClient:
    """
    Authenticated HTTP client adapter for Graph calls.

    Usage:
        async with GraphAPIClient(BearerAuth(tokens)) as api:
            response = await api.post("/users/me/drive/...", json={...})
    """

    def __init__(
        self,
        auth: Optional[httpx.Auth] = None,
        base_url: str = GRAPH_API_URL,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._auth = auth
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            auth=self._auth,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(self, endpoint: str, json: Dict) -> Any:
        return await self._request("POST", endpoint, json=json)

    async def get(self, endpoint: str) -> Any:
        return await self._request("GET", endpoint)

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("GraphAPIClient not initialized. Use 'async with' context.")

        max_retries = 3
        for attempt in range(max_retries):
            try:
                response = await self._client.request(method, endpoint, **kwargs)
            except httpx.TransportError:
                if attempt < max_retries - 1:
                    await asyncio.sleep(0.5 * (attempt + 1))
                    continue
                raise

            if response.status_code >= 500 and attempt < max_retries - 1:
                await asyncio.sleep(0.5 * (attempt + 1))
                continue

            raise_for_graph_error(response)
            return response

        raise RuntimeError(f"Failed to {method} {endpoint} after {max_retries} attempts")
