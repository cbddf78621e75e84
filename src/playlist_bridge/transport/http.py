"""
REST HTTP client for the playlist bridge server.

Every request names the account slot it acts for; the slot travels as the
`Secondary` header, never in the URL path.
"""

import logging
from typing import Any, Optional

import httpx

from playlist_bridge.errors import AuthExpiredError, RemoteApiError
from playlist_bridge.models.session import Slot

DEFAULT_BASE_URL = "http://localhost:3000"
USER_AGENT = "playlist-bridge/0.1.0"

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._tokens: dict[Slot, str] = {}
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def set_token(self, slot: Slot, token: Optional[str]) -> None:
        if token:
            self._tokens[slot] = token
        else:
            self._tokens.pop(slot, None)

    def _headers(self, slot: Optional[Slot], authenticated: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if slot is not None:
            headers["Secondary"] = "true" if slot.is_secondary else "false"
            token = self._tokens.get(slot)
            if authenticated and token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _unwrap(json_data: Any) -> Any:
        """Unwrap the standard envelope: { "status": "success", "data": <actual_data> }"""
        if isinstance(json_data, dict) and "status" in json_data and "data" in json_data:
            return json_data["data"]
        return json_data

    async def request(
        self,
        method: str,
        path: str,
        slot: Optional[Slot] = None,
        *,
        params: Optional[dict[str, str]] = None,
        body: Optional[Any] = None,
        authenticated: bool = True,
        text: bool = False,
    ) -> Any:
        logger.debug(f"{method} {path} slot={slot} params={params}")
        try:
            resp = await self._client.request(
                method, path, params=params, json=body, headers=self._headers(slot, authenticated),
            )
        except httpx.HTTPError as e:
            raise RemoteApiError(f"{method} {path} failed: {e}") from e
        if resp.status_code == 401:
            raise AuthExpiredError(f"HTTP 401 for {slot} slot: {resp.text[:200]}")
        if resp.status_code >= 400:
            raise RemoteApiError(f"HTTP {resp.status_code}: {resp.text[:200]}", status=resp.status_code)
        if text:
            return resp.text.strip().strip('"')
        if not resp.content:
            return None
        return self._unwrap(resp.json())

    async def get(self, path: str, slot: Optional[Slot] = None, params: Optional[dict[str, str]] = None,
                  authenticated: bool = True, text: bool = False) -> Any:
        return await self.request("GET", path, slot, params=params, authenticated=authenticated, text=text)

    async def post(self, path: str, slot: Optional[Slot] = None, body: Optional[Any] = None,
                   params: Optional[dict[str, str]] = None) -> Any:
        return await self.request("POST", path, slot, params=params, body=body)

    async def delete(self, path: str, slot: Optional[Slot] = None, body: Optional[Any] = None,
                     params: Optional[dict[str, str]] = None) -> Any:
        return await self.request("DELETE", path, slot, params=params, body=body)

    async def close(self) -> None:
        await self._client.aclose()
