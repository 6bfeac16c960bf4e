"""Typed views over the Microsoft Graph payloads the connector consumes.

Only the fields the search-and-fetch flow reads are modelled; everything else
in the upstream JSON is ignored.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceType(str, Enum):
    DRIVE_ITEM = "#microsoft.graph.driveItem"
    LIST_ITEM = "#microsoft.graph.listItem"
    LIST = "#microsoft.graph.list"
    DRIVE = "#microsoft.graph.drive"
    SITE = "#microsoft.graph.site"
    MESSAGE = "#microsoft.graph.message"
    EVENT = "#microsoft.graph.event"
    CHAT_MESSAGE = "#microsoft.graph.chatMessage"
    EXTERNAL_ITEM = "#microsoft.graph.externalItem"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: Any) -> "ResourceType":
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class GraphModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ParentReference(GraphModel):
    drive_id: str | None = Field(default=None, alias="driveId")
    id: str | None = None


class SearchResource(GraphModel):
    odata_type: ResourceType = Field(default=ResourceType.UNKNOWN, alias="@odata.type")
    id: str | None = None
    name: str | None = None
    parent_reference: ParentReference | None = Field(
        default=None, alias="parentReference"
    )

    @field_validator("odata_type", mode="before")
    @classmethod
    def _coerce_unknown_tags(cls, v: Any) -> ResourceType:
        if isinstance(v, ResourceType):
            return v
        return ResourceType.from_tag(v)

    @property
    def drive_id(self) -> str | None:
        return self.parent_reference.drive_id if self.parent_reference else None


class SearchHit(GraphModel):
    resource: SearchResource = Field(default_factory=SearchResource)

    @property
    def is_drive_item(self) -> bool:
        return self.resource.odata_type is ResourceType.DRIVE_ITEM


class HitsContainer(GraphModel):
    total: int | None = None
    more_results_available: bool = Field(default=False, alias="moreResultsAvailable")
    hits: list[SearchHit] = Field(default_factory=list)


class SearchResponse(GraphModel):
    hits_containers: list[HitsContainer] | None = Field(
        default=None, alias="hitsContainers"
    )


class SearchQueryResponse(GraphModel):
    value: list[SearchResponse] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """True when Graph reported no hit containers or a zero total."""
        if not self.value:
            return True
        containers = self.value[0].hits_containers
        if not containers:
            return True
        return containers[0].total == 0

    def more_results_available(self) -> bool:
        return any(
            container.more_results_available
            for response in self.value
            for container in response.hits_containers or []
        )

    def hits(self) -> list[SearchHit]:
        return [
            hit
            for response in self.value
            for container in response.hits_containers or []
            for hit in container.hits
        ]


class FileFacet(GraphModel):
    mime_type: str | None = Field(default=None, alias="mimeType")


class DriveItemMetadata(GraphModel):
    id: str | None = None
    name: str | None = None
    file: FileFacet | None = None
