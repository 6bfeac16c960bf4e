import logging
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class GraphClient:
    """Async Microsoft Graph client bound to one delegated access token.

    One instance is opened per request and shared by every concurrent fetch
    made for that request, so all calls reuse a single connection pool.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search_query(self, body: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post("/search/query", json=body)
        if response.status_code != 200:
            logger.error(
                f"Graph search failed: {response.status_code} - {response.text}"
            )
            response.raise_for_status()
        result: dict[str, Any] = response.json()
        return result

    async def get_drive_item(self, drive_id: str, item_id: str) -> dict[str, Any]:
        response = await self._client.get(f"/drives/{drive_id}/items/{item_id}")
        if response.status_code != 200:
            logger.error(
                f"Failed to get drive item {item_id}: {response.status_code} - {response.text}"
            )
            response.raise_for_status()
        result: dict[str, Any] = response.json()
        return result

    async def stream_drive_item_content(
        self, drive_id: str, item_id: str
    ) -> AsyncIterator[bytes]:
        async with self._client.stream(
            "GET", f"/drives/{drive_id}/items/{item_id}/content"
        ) as response:
            if not response.is_success:
                await response.aread()
                logger.error(
                    f"Failed to download drive item {item_id}: {response.status_code} - {response.text}"
                )
                response.raise_for_status()
            async for chunk in response.aiter_bytes():
                yield chunk
