import asyncio
import base64
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from graph_connector.core.config import Settings
from graph_connector.core.exceptions import FetchError, SearchError
from graph_connector.schemas.connector import (
    NO_RESULTS,
    FetchedFile,
    FetchFailure,
    FileSearchResponse,
)
from graph_connector.schemas.graph import (
    DriveItemMetadata,
    ResourceType,
    SearchHit,
    SearchQueryResponse,
)
from graph_connector.services.graph_client import GraphClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fixed result window; callers cannot page past the first ten hits.
SEARCH_FROM = 0
SEARCH_SIZE = 10


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Await all awaitables; on the first failure cancel the ones still running."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _describe_error(e: Exception) -> str:
    if isinstance(e, httpx.TimeoutException):
        return "request timed out"
    if isinstance(e, httpx.HTTPStatusError):
        return f"Request failed with status code {e.response.status_code}"
    if isinstance(e, ValueError):
        return "invalid JSON in response"
    return str(e) or e.__class__.__name__


class SearchService:
    """Runs a Graph file search and pulls the content of every matching file."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport

    def build_search_request(self, search_term: str) -> dict[str, Any]:
        return {
            "requests": [
                {
                    "entityTypes": ["driveItem"],
                    "query": {"queryString": search_term},
                    "from": SEARCH_FROM,
                    "size": SEARCH_SIZE,
                }
            ]
        }

    async def run(
        self, access_token: str, search_term: str
    ) -> str | FileSearchResponse:
        async with GraphClient(
            access_token,
            base_url=self.settings.graph_base_url,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
        ) as client:
            result = await self.search(client, search_term)
            if result.is_empty():
                logger.info(f"No results found for '{search_term}'")
                return NO_RESULTS

            hits = result.hits()
            drive_items = [hit for hit in hits if hit.is_drive_item]
            logger.info(
                f"Search for '{search_term}' returned {len(hits)} hits, "
                f"{len(drive_items)} drive items"
            )
            if result.more_results_available():
                logger.info(
                    f"More than {SEARCH_SIZE} results exist for '{search_term}'; "
                    "only the first page is fetched"
                )
            return await self.fetch_all(client, drive_items)

    async def search(self, client: GraphClient, search_term: str) -> SearchQueryResponse:
        try:
            data = await client.search_query(self.build_search_request(search_term))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Graph search error: {e}")
            raise SearchError(f"Search failed: {_describe_error(e)}") from e

        try:
            return SearchQueryResponse.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Unexpected Graph search response: {e}")
            raise SearchError("Search response could not be parsed") from e

    async def fetch_all(
        self, client: GraphClient, hits: list[SearchHit]
    ) -> FileSearchResponse:
        if not hits:
            return FileSearchResponse()

        timeout = self.settings.FETCH_TIMEOUT_SECONDS
        try:
            if self.settings.FETCH_FAILURE_POLICY == "partial":
                return await asyncio.wait_for(self._fetch_partial(client, hits), timeout)
            files = await asyncio.wait_for(
                gather_or_cancel(self.fetch_file(client, hit) for hit in hits), timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Timed out after {timeout}s fetching {len(hits)} files")
            raise FetchError(f"Timed out after {timeout}s fetching {len(hits)} files")
        return FileSearchResponse(openai_file_response=files)

    async def _fetch_partial(
        self, client: GraphClient, hits: list[SearchHit]
    ) -> FileSearchResponse:
        results = await asyncio.gather(
            *(self.fetch_file(client, hit) for hit in hits), return_exceptions=True
        )
        response = FileSearchResponse(errors=[])
        for result in results:
            if isinstance(result, FetchError):
                response.errors.append(  # type: ignore[union-attr]
                    FetchFailure(
                        id=result.item_id, name=result.item_name, error=result.message
                    )
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                response.openai_file_response.append(result)
        if not response.errors:
            response.errors = None
        return response

    async def fetch_file(self, client: GraphClient, hit: SearchHit) -> FetchedFile:
        resource = hit.resource
        if resource.odata_type is not ResourceType.DRIVE_ITEM:
            raise FetchError(
                f"Failed to fetch content for {resource.name}: not a drive item",
                item_id=resource.id,
                item_name=resource.name,
            )
        drive_id, item_id = resource.drive_id, resource.id
        if not drive_id or not item_id:
            logger.error(f"Search hit for {resource.name} has no drive reference")
            raise FetchError(
                f"Failed to fetch content for {resource.name}: missing drive or item id",
                item_id=item_id,
                item_name=resource.name,
            )

        try:
            content, raw_metadata = await gather_or_cancel(
                [
                    self._read_content(client, drive_id, item_id),
                    client.get_drive_item(drive_id, item_id),
                ]
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching drive content for {item_id}: {e}")
            raise FetchError(
                f"Failed to fetch content for {resource.name}: {_describe_error(e)}",
                item_id=item_id,
                item_name=resource.name,
            ) from e

        try:
            metadata = DriveItemMetadata.model_validate(raw_metadata)
        except PydanticValidationError as e:
            logger.error(f"Unexpected drive item metadata for {item_id}: {e}")
            raise FetchError(
                f"Failed to fetch content for {resource.name}: invalid item metadata",
                item_id=item_id,
                item_name=resource.name,
            ) from e
        if metadata.file is None or not metadata.file.mime_type:
            raise FetchError(
                f"Failed to fetch content for {resource.name}: item is not a file",
                item_id=item_id,
                item_name=resource.name,
            )

        return FetchedFile(
            name=metadata.name or resource.name or item_id,
            mime_type=metadata.file.mime_type,
            content=base64.b64encode(content).decode("ascii"),
        )

    async def _read_content(
        self, client: GraphClient, drive_id: str, item_id: str
    ) -> bytes:
        chunks: list[bytes] = []
        async for chunk in client.stream_drive_item_content(drive_id, item_id):
            chunks.append(chunk)
        return b"".join(chunks)
