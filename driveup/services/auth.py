"""Client-credentials authentication against the Microsoft identity platform."""
import asyncio
import logging
import threading
from typing import List, Optional

import httpx
import msal

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)

AUTHORITY_URL = "https://login.microsoftonline.com"
GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


class GraphTokenProvider:
    """
    App-only token provider for Microsoft Graph.

    msal keeps the token cached in memory and
    only goes to the network when it is missing or about to expire.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        scopes: Optional[List[str]] = None,
    ):
        self._tenant_id = tenant_id
        self._client_id = client_id
        self._client_secret = client_secret
        self._scopes = scopes or GRAPH_SCOPES
        self._app: Optional[msal.ConfidentialClientApplication] = None
        self._lock = threading.Lock()

    def _get_app(self) -> msal.ConfidentialClientApplication:
        # Created lazily: msal performs authority discovery on construction
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                client_id=self._client_id,
                authority=f"{AUTHORITY_URL}/{self._tenant_id}",
                client_credential=self._client_secret,
            )
        return self._app

    def get_token(self) -> str:
        """Return a valid access token, acquiring one if needed."""
        with self._lock:
            result = self._get_app().acquire_token_for_client(scopes=self._scopes)

        if "access_token" in result:
            return result["access_token"]

        code = result.get("error") or "authentication_failed"
        description = result.get("error_description", "")
        logger.error(f"Token request refused: {code} {description}")
        raise AuthenticationError(code, description)


class BearerAuth(httpx.Auth):
    """httpx auth flow that attaches a Graph bearer token to each request."""

    def __init__(self, token_provider):
        self._token_provider = token_provider

    def sync_auth_flow(self, request: httpx.Request):
        request.headers["Authorization"] = f"Bearer {self._token_provider.get_token()}"
        yield request

    async def async_auth_flow(self, request: httpx.Request):
        # msal is blocking; keep it off the event loop
        token = await asyncio.to_thread(self._token_provider.get_token)
        request.headers["Authorization"] = f"Bearer {token}"
        yield request
