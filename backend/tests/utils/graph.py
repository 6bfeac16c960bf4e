"""In-process fakes for Microsoft Graph and the Entra ID token endpoint."""

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

import httpx

DRIVE_ITEM = "#microsoft.graph.driveItem"
DOWNLOAD_HOST = "download.example.com"


def drive_item_hit(
    item_id: str,
    name: str,
    drive_id: str | None = "D",
    odata_type: str = DRIVE_ITEM,
) -> dict[str, Any]:
    resource: dict[str, Any] = {"@odata.type": odata_type, "id": item_id, "name": name}
    if drive_id is not None:
        resource["parentReference"] = {"driveId": drive_id, "id": "parent-1"}
    return {"hitId": item_id, "rank": 1, "summary": "", "resource": resource}


def search_payload(
    *hits: dict[str, Any], total: int | None = None, more_results: bool = False
) -> dict[str, Any]:
    return {
        "value": [
            {
                "searchTerms": ["budget"],
                "hitsContainers": [
                    {
                        "hits": list(hits),
                        "total": len(hits) if total is None else total,
                        "moreResultsAvailable": more_results,
                    }
                ],
            }
        ]
    }


@dataclass
class FakeFile:
    name: str
    mime_type: str | None
    chunks: list[bytes]
    content_status: int = 200
    delay: float = 0.0
    raw_metadata: str | None = None

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


@dataclass
class FakeGraph:
    """Serves search, item metadata and redirected item content."""

    search_response: dict[str, Any] = field(default_factory=lambda: {"value": []})
    search_status: int = 200
    search_text: str | None = None
    files: dict[tuple[str, str], FakeFile] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)

    def add_file(
        self,
        item_id: str,
        name: str,
        data: bytes | list[bytes],
        mime_type: str | None = "application/pdf",
        drive_id: str = "D",
        **kwargs: Any,
    ) -> FakeFile:
        chunks = data if isinstance(data, list) else [data]
        fake = FakeFile(name=name, mime_type=mime_type, chunks=chunks, **kwargs)
        self.files[(drive_id, item_id)] = fake
        return fake

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    async def _stream(self, fake: FakeFile, item_id: str) -> AsyncIterator[bytes]:
        try:
            if fake.delay:
                await asyncio.sleep(fake.delay)
            for chunk in fake.chunks:
                yield chunk
        except asyncio.CancelledError:
            self.cancelled.append(item_id)
            raise

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == DOWNLOAD_HOST:
            _, drive_id, item_id = request.url.path.split("/")
            fake = self.files[(drive_id, item_id)]
            return httpx.Response(200, content=self._stream(fake, item_id))

        path = request.url.path.removeprefix("/v1.0")
        if path == "/search/query":
            if self.search_text is not None:
                return httpx.Response(self.search_status, text=self.search_text)
            return httpx.Response(self.search_status, json=self.search_response)

        parts = path.strip("/").split("/")
        if len(parts) >= 4 and parts[0] == "drives" and parts[2] == "items":
            key = (parts[1], parts[3])
            fake = self.files.get(key)
            if fake is None:
                return httpx.Response(404, json={"error": {"code": "itemNotFound"}})
            if len(parts) == 5 and parts[4] == "content":
                if fake.content_status != 200:
                    return httpx.Response(
                        fake.content_status, json={"error": {"code": "accessDenied"}}
                    )
                return httpx.Response(
                    302,
                    headers={"Location": f"https://{DOWNLOAD_HOST}/{key[0]}/{key[1]}"},
                )
            if fake.raw_metadata is not None:
                return httpx.Response(200, text=fake.raw_metadata)
            metadata: dict[str, Any] = {"id": key[1], "name": fake.name}
            if fake.mime_type is not None:
                metadata["file"] = {"mimeType": fake.mime_type}
            else:
                metadata["folder"] = {"childCount": 0}
            return httpx.Response(200, json=metadata)

        return httpx.Response(404)

    def search_bodies(self) -> list[dict[str, Any]]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path.endswith("/search/query")
        ]


@dataclass
class FakeTokenEndpoint:
    status_code: int = 200
    payload: dict[str, Any] = field(
        default_factory=lambda: {"token_type": "Bearer", "access_token": "graph-token"}
    )
    requests: list[httpx.Request] = field(default_factory=list)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    def last_form(self) -> dict[str, str]:
        form = parse_qs(self.requests[-1].content.decode())
        return {k: v[0] for k, v in form.items()}
